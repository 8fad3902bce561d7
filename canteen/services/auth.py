"""Authentication business logic.

Covers the three sign-in paths (OTP over SMS, password, email verification
code), profile completion and token issuing. All functions raise errors
from ``canteen.errors``; none of them touches the request.
"""

import hmac
import logging
from datetime import timedelta

from flask import current_app
from flask_jwt_extended import create_access_token, create_refresh_token
from passlib.hash import pbkdf2_sha256

from canteen import db
from canteen.errors import (
    AccountLocked,
    Conflict,
    InvalidOrExpired,
    InvalidState,
    NotFound,
    Unauthenticated,
    UpstreamFailure,
    ValidationError,
)
from canteen.models import User, utcnow
from canteen.services.email import send_verification_email
from canteen.services.helper import commit_or_conflict, generate_numeric_code
from canteen.services.logout import logout_logic
from canteen.services.sms import get_sms_gateway

logger = logging.getLogger(__name__)


# Tokens

def _claims(user):
    return {
        "role": user.role,
        "phone": user.phone,
        "profileCompleted": bool(user.profile_completed),
    }


def issue_tokens(user):
    """Create an access/refresh token pair carrying the user's current claims."""
    claims = _claims(user)
    access_token = create_access_token(identity=str(user.id), additional_claims=claims, fresh=True)
    refresh_token = create_refresh_token(identity=str(user.id), additional_claims=claims)
    return access_token, refresh_token


def _session_payload(user):
    access_token, refresh_token = issue_tokens(user)
    return {
        "success": True,
        "token": access_token,
        "refreshToken": refresh_token,
        "user": user.to_dict(),
    }


def _load_user(user_id):
    user = db.session.get(User, user_id)
    if not user:
        raise Unauthenticated("Not authenticated")
    return user


def _codes_match(stored, supplied):
    return hmac.compare_digest(str(stored).encode(), str(supplied).encode())


# OTP over SMS

def request_code(phone, name=None):
    """Generate a one-time code for ``phone``, provisioning the user if new.

    When the SMS gateway fails the code is returned in the response so the
    caller is never blocked.
    """
    config = current_app.config
    user = User.query.filter_by(phone=phone).first()
    is_new_user = False

    if not user:
        if not name or not name.strip():
            raise ValidationError("Name is required for registration")
        logger.info(f"Creating new user for phone {phone}")
        user = User(
            phone=phone,
            name=name.strip(),
            role="student",
            block="",
            class_number="",
            profile_completed=False,
        )
        db.session.add(user)
        is_new_user = True

    otp = generate_numeric_code(config["OTP_LENGTH"])
    user.otp_code = otp
    user.otp_expires_at = utcnow() + timedelta(minutes=config["OTP_EXPIRY_MINUTES"])
    commit_or_conflict("user")

    message = (
        f"Your {config['SMS_BRAND']} verification code is: {otp}. "
        f"Valid for {config['OTP_EXPIRY_MINUTES']} minutes."
    )
    try:
        get_sms_gateway().send(phone, message)
    except UpstreamFailure as e:
        logger.warning(f"OTP SMS to {phone} failed, returning code in response: {e.message}")
        return {
            "message": "OTP generated successfully (SMS failed)",
            "isNewUser": is_new_user,
            "otp": otp,
            "warning": e.message,
        }

    response = {"message": "OTP sent successfully", "isNewUser": is_new_user}
    if config["EXPOSE_OTP_IN_RESPONSE"]:
        response["otp"] = otp
    return response


def verify_code(phone, code):
    """Check the stored code for ``phone`` and sign the user in.

    A wrong code burns the stored one; a new code must be requested.
    """
    user = User.query.filter_by(phone=phone).first()
    if not user:
        raise NotFound("User not found")

    stored, expires_at = user.otp_code, user.otp_expires_at
    valid = (
        stored is not None
        and expires_at is not None
        and utcnow() <= expires_at
        and _codes_match(stored, code)
    )
    if not valid:
        if stored is not None:
            user.otp_code = None
            user.otp_expires_at = None
            db.session.commit()
        raise InvalidOrExpired("Invalid or expired OTP")

    user.otp_code = None
    user.otp_expires_at = None
    user.is_phone_verified = True
    db.session.commit()
    logger.info(f"User {user.id} signed in with OTP")

    access_token, refresh_token = issue_tokens(user)
    return {**user.to_dict(), "token": access_token, "refreshToken": refresh_token}


# Password flow

def register_with_password(name, phone, password, email=None):
    if User.query.filter_by(phone=phone).first():
        raise Conflict("User with this phone number already exists.")
    if email and User.query.filter_by(email=email).first():
        raise Conflict("User with this email already exists.")

    user = User(
        name=name.strip(),
        phone=phone,
        password=pbkdf2_sha256.hash(password),
        role="student",
        profile_completed=False,
        login_attempts=0,
    )
    db.session.add(user)
    commit_or_conflict("user")
    logger.info(f"Registered user {user.id} with password")

    payload = _session_payload(user)
    payload["message"] = "User registered successfully"
    if email:
        warning = _start_email_verification(user, email)
        payload["user"] = user.to_dict()
        if warning:
            payload["warning"] = warning
        else:
            payload["message"] += ". Please verify your email address by checking your inbox for the verification code."
    return payload


def login_with_password(phone, password):
    config = current_app.config
    user = User.query.filter_by(phone=phone).first()
    if not user or not user.has_password:
        raise Unauthenticated("Invalid phone number or password.")

    now = utcnow()
    if user.is_locked(now):
        raise AccountLocked(
            "Account is locked due to too many failed login attempts. Please try again later.",
            lockedUntil=user.lock_until.isoformat(),
        )
    if user.lock_until is not None:
        # Lockout window is over: start counting afresh
        user.lock_until = None
        user.login_attempts = 0

    if not pbkdf2_sha256.verify(password, user.password):
        user.login_attempts = (user.login_attempts or 0) + 1
        if user.login_attempts >= config["MAX_LOGIN_ATTEMPTS"]:
            user.lock_until = now + timedelta(minutes=config["LOCKOUT_MINUTES"])
            db.session.commit()
            logger.warning(f"User {user.id} locked after {user.login_attempts} failed logins")
            raise AccountLocked(
                f"Too many failed login attempts. Account locked for {config['LOCKOUT_MINUTES']} minutes.",
                lockedUntil=user.lock_until.isoformat(),
            )
        db.session.commit()
        raise Unauthenticated(
            "Invalid phone number or password.",
            attemptsRemaining=config["MAX_LOGIN_ATTEMPTS"] - user.login_attempts,
        )

    user.login_attempts = 0
    user.lock_until = None
    db.session.commit()

    payload = _session_payload(user)
    payload["message"] = "Login successful"
    return payload


def change_password(principal, current_password, new_password):
    user = _load_user(principal.id)
    if not user.has_password:
        raise ValidationError("This account does not use a password.")
    if not pbkdf2_sha256.verify(current_password, user.password):
        raise Unauthenticated("Wrong password provided.")

    user.password = pbkdf2_sha256.hash(new_password)
    user.login_attempts = 0
    user.lock_until = None
    db.session.commit()
    return {"message": "Password updated successfully!"}


# Session

def current_user(principal):
    return _load_user(principal.id).to_dict()


def refresh_access(principal):
    user = _load_user(principal.id)
    access_token = create_access_token(identity=str(user.id), additional_claims=_claims(user), fresh=False)
    return {"token": access_token}


def logout(principal):
    return logout_logic(principal.token_jti, principal.token_expires)


def update_profile(user_id, block, class_number):
    """Store the delivery address and re-issue tokens with fresh claims."""
    if not block or not block.strip() or not class_number or not class_number.strip():
        raise ValidationError("Block and class number are required")

    user = db.session.get(User, user_id)
    if not user:
        raise NotFound("User not found")

    user.block = block.strip()
    user.class_number = class_number.strip()
    user.profile_completed = True
    db.session.commit()

    access_token, refresh_token = issue_tokens(user)
    return {**user.to_dict(), "token": access_token, "refreshToken": refresh_token}


# Email verification

def _start_email_verification(user, email):
    """Attach ``email`` to the user and send a code; return a warning on send failure."""
    config = current_app.config
    code = generate_numeric_code(config["OTP_LENGTH"])
    user.email = email
    user.is_email_verified = False
    user.email_verification_code = code
    user.verification_code_sent_at = utcnow()
    commit_or_conflict("user")

    try:
        send_verification_email(email, code, config["OTP_EXPIRY_MINUTES"], config["SMS_BRAND"])
    except UpstreamFailure as e:
        logger.warning(f"Verification email to {email} failed: {e.message}")
        return e.message
    return None


def request_email_verification(principal, email):
    user = _load_user(principal.id)
    taken = User.query.filter(User.email == email, User.id != user.id).first()
    if taken:
        raise Conflict("Email is already in use by another user.")
    if user.email == email and user.is_email_verified:
        raise InvalidState("Email is already verified.")

    warning = _start_email_verification(user, email)
    if warning:
        return {
            "message": "Verification code generated but the email could not be sent.",
            "warning": warning,
        }
    return {"message": "Verification code sent. Please check your inbox."}


def verify_email(principal, code):
    config = current_app.config
    user = _load_user(principal.id)
    if user.is_email_verified:
        raise InvalidState("Email already verified.")
    if not user.email_verification_code or not _codes_match(user.email_verification_code, code):
        raise InvalidOrExpired("Invalid verification code.")

    expiry_time = user.verification_code_sent_at + timedelta(minutes=config["OTP_EXPIRY_MINUTES"])
    if utcnow() > expiry_time:
        raise InvalidOrExpired("Verification code has expired.")

    user.is_email_verified = True
    user.email_verification_code = None
    db.session.commit()
    return {"message": "Email verified successfully.", "user": user.to_dict()}
