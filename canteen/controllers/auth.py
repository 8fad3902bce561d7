from flask import jsonify
from flask.views import MethodView
from flask_smorest import Blueprint
from flask_jwt_extended import set_access_cookies, set_refresh_cookies, unset_jwt_cookies

from canteen.schemas import (
    SendOtpSchema, VerifyOtpSchema,
    RegisterSchema, LoginSchema,
    ProfileUpdateSchema, ChangePasswordSchema,
    EmailVerificationRequestSchema, EmailVerificationSchema
)
from canteen.services import auth as auth_service
from canteen.services.principal import principal_required


blp = Blueprint("Auth", __name__, description="Sign-in, session and profile operations")


def session_response(payload, status=200):
    """JSON response that also stores the tokens as cookies."""
    response = jsonify(payload)
    response.status_code = status
    set_access_cookies(response, payload["token"])
    if payload.get("refreshToken"):
        set_refresh_cookies(response, payload["refreshToken"])
    return response


@blp.route("/api/auth/send-otp")
class SendOtp(MethodView):
    @blp.arguments(SendOtpSchema)
    def post(self, data):
        """Generate a one-time code and send it by SMS."""
        return auth_service.request_code(data["phone"], data.get("name")), 200


@blp.route("/api/auth/verify-otp")
class VerifyOtp(MethodView):
    @blp.arguments(VerifyOtpSchema)
    def post(self, data):
        """Verify the one-time code and sign in."""
        return session_response(auth_service.verify_code(data["phone"], data["otp"]))


@blp.route("/api/auth/register")
class Register(MethodView):
    @blp.arguments(RegisterSchema)
    def post(self, data):
        """Create a password account."""
        payload = auth_service.register_with_password(
            data["name"], data["phone"], data["password"], data.get("email"))
        return session_response(payload, 201)


@blp.route("/api/auth/login")
class Login(MethodView):
    @blp.arguments(LoginSchema)
    def post(self, data):
        """Log in with phone and password."""
        return session_response(auth_service.login_with_password(data["phone"], data["password"]))


@blp.route("/api/auth/current-user")
class CurrentUser(MethodView):
    @principal_required()
    def get(self, principal):
        """Get the signed-in user (bearer token or cookie)."""
        return auth_service.current_user(principal), 200


@blp.route("/api/auth/profile")
class Profile(MethodView):
    @principal_required()
    @blp.arguments(ProfileUpdateSchema)
    def put(self, data, principal):
        """Complete the profile with the delivery block and class number."""
        payload = auth_service.update_profile(
            principal.id, data.get("block"), data.get("class_number"))
        return session_response(payload)


@blp.route("/api/auth/logout")
class Logout(MethodView):
    @principal_required()
    def post(self, principal):
        """Revoke the current access token."""
        response = jsonify(auth_service.logout(principal))
        unset_jwt_cookies(response)
        return response


@blp.route("/api/auth/refresh")
class Refresh(MethodView):
    @principal_required(refresh=True)
    def post(self, principal):
        """Issue a new access token from a refresh token."""
        payload = auth_service.refresh_access(principal)
        response = jsonify(payload)
        set_access_cookies(response, payload["token"])
        return response


@blp.route("/api/auth/change-password")
class ChangePassword(MethodView):
    @principal_required()
    @blp.arguments(ChangePasswordSchema)
    def post(self, data, principal):
        return auth_service.change_password(
            principal, data["current_password"], data["new_password"]), 200


@blp.route("/api/auth/email/request-verification")
class EmailVerificationRequest(MethodView):
    @principal_required()
    @blp.arguments(EmailVerificationRequestSchema)
    def post(self, data, principal):
        """Attach an email address and send a verification code to it."""
        return auth_service.request_email_verification(principal, data["email"]), 200


@blp.route("/api/auth/email/verify")
class EmailVerification(MethodView):
    @principal_required()
    @blp.arguments(EmailVerificationSchema)
    def post(self, data, principal):
        return auth_service.verify_email(principal, data["code"]), 200
