"""
Invite-only affiliate onboarding.

Admins create invites (optionally locked to an email or a phone number).
Signup redeems an invite, records the agreement signature and creates the
affiliate. Every invite failure surfaces as the same INVALID_INVITE error
so codes cannot be probed.
"""

from __future__ import annotations

import logging
import re
import secrets
import string
from collections.abc import Callable
from datetime import datetime, timedelta
from uuid import uuid4

from src.components.affiliates.component import hash_ip
from src.components.affiliates.models import (
    Affiliate,
    AffiliateInvite,
    AffiliateSettings,
    AffiliateSignupInput,
    AffiliateStatus,
    AgreementSignature,
    CreateInviteInput,
    InviteOutput,
    InviteUsage,
    SendPhoneCodeInput,
    SendPhoneCodeOutput,
    SignupOutput,
    ValidateInviteInput,
    ValidateInviteOutput,
    ValidationError,
)
from src.components.affiliates.ports import (
    AffiliateRepoPort,
    InviteRepoPort,
    SmsVerificationPort,
    TimePort,
)
from src.components.orders.models import Customer
from src.components.orders.ports import CustomerRepoPort

logger = logging.getLogger(__name__)

CODE_ALPHABET = string.ascii_uppercase + string.digits
MAX_CODE_ATTEMPTS = 10

INVALID_INVITE = ValidationError(
    "INVALID_INVITE", "This invite link is invalid or has expired", "invite_code"
)


def generate_invite_code() -> str:
    return secrets.token_urlsafe(12)


def normalize_phone(phone: str | None) -> str:
    return re.sub(r"[^\d+]", "", phone or "")


def generate_affiliate_code(
    name: str,
    exists: Callable[[str], bool],
    random_length: int = 6,
) -> str:
    """First six letters of the name (or REF) plus random characters, unique."""
    letters = re.sub(r"[^A-Za-z]", "", name).upper()[:6] or "REF"
    for _ in range(MAX_CODE_ATTEMPTS):
        suffix = "".join(secrets.choice(CODE_ALPHABET) for _ in range(random_length))
        code = f"{letters}{suffix}"
        if not exists(code):
            return code
    raise RuntimeError("Could not generate a unique affiliate code")


def invite_is_usable(invite: AffiliateInvite | None, now: datetime) -> bool:
    if invite is None:
        return False
    if invite.expires_at and invite.expires_at <= now:
        return False
    return invite.times_used < invite.max_uses


def run_create_invite(
    inp: CreateInviteInput,
    repo: InviteRepoPort,
    time: TimePort,
    default_expiry_days: int = 30,
) -> InviteOutput:
    if inp.max_uses < 1:
        return InviteOutput(
            success=False,
            errors=[ValidationError("INVALID_MAX_USES", "max_uses must be at least 1", "max_uses")],
        )

    now = time.now_utc()
    days = inp.expires_in_days if inp.expires_in_days is not None else default_expiry_days
    invite = AffiliateInvite(
        id=uuid4(),
        invite_code=generate_invite_code(),
        target_email=inp.target_email.strip().lower() if inp.target_email else None,
        target_phone=normalize_phone(inp.target_phone) or None,
        expires_at=now + timedelta(days=days) if days > 0 else None,
        max_uses=inp.max_uses,
        created_by=inp.created_by,
        notes=inp.notes,
        created_at=now,
    )
    repo.save(invite)
    logger.info(f"Affiliate invite created: {invite.id}")
    return InviteOutput(success=True, invite=invite)


def run_validate_invite(
    inp: ValidateInviteInput,
    repo: InviteRepoPort,
    settings: AffiliateSettings,
    time: TimePort,
) -> ValidateInviteOutput:
    invite = repo.get_by_code(inp.invite_code)
    if not settings.program_active or not invite_is_usable(invite, time.now_utc()):
        return ValidateInviteOutput(valid=False, errors=[INVALID_INVITE])
    assert invite is not None
    return ValidateInviteOutput(
        valid=True,
        requires_phone_verification=bool(invite.target_phone),
        target_email=invite.target_email,
        agreement_text=settings.agreement_text,
        agreement_version=settings.agreement_version,
    )


def run_send_phone_code(
    inp: SendPhoneCodeInput,
    repo: InviteRepoPort,
    sms: SmsVerificationPort,
    time: TimePort,
) -> SendPhoneCodeOutput:
    invite = repo.get_by_code(inp.invite_code)
    if not invite_is_usable(invite, time.now_utc()) or invite is None or not invite.target_phone:
        return SendPhoneCodeOutput(success=False, errors=[INVALID_INVITE])

    if not sms.start_verification(invite.target_phone):
        logger.error(f"Phone verification could not be started for invite {invite.id}")
        return SendPhoneCodeOutput(
            success=False,
            errors=[ValidationError("SMS_FAILED", "Could not send a verification code")],
        )
    return SendPhoneCodeOutput(success=True)


def run_affiliate_signup(
    inp: AffiliateSignupInput,
    invites: InviteRepoPort,
    affiliates: AffiliateRepoPort,
    customers: CustomerRepoPort,
    settings: AffiliateSettings,
    time: TimePort,
    sms: SmsVerificationPort | None = None,
    code_random_length: int = 6,
) -> SignupOutput:
    if not settings.program_active:
        return SignupOutput(
            success=False,
            errors=[ValidationError("PROGRAM_INACTIVE", "The affiliate program is closed")],
        )

    now = time.now_utc()
    email = inp.email.strip().lower()
    name = inp.name.strip()

    invite = invites.get_by_code(inp.invite_code)
    if not invite_is_usable(invite, now) or invite is None:
        return SignupOutput(success=False, errors=[INVALID_INVITE])
    if invite.target_email and invite.target_email != email:
        return SignupOutput(success=False, errors=[INVALID_INVITE])

    if not name:
        return SignupOutput(
            success=False, errors=[ValidationError("NAME_REQUIRED", "Name is required", "name")]
        )
    if "@" not in email:
        return SignupOutput(
            success=False, errors=[ValidationError("INVALID_EMAIL", "Invalid email", "email")]
        )
    if not inp.agreement_accepted:
        return SignupOutput(
            success=False,
            errors=[
                ValidationError(
                    "AGREEMENT_REQUIRED", "You must accept the affiliate agreement", "agreement"
                )
            ],
        )

    if invite.target_phone:
        if sms is None or not inp.verification_code or not sms.check_verification(
            invite.target_phone, inp.verification_code
        ):
            return SignupOutput(
                success=False,
                errors=[
                    ValidationError(
                        "PHONE_NOT_VERIFIED", "Phone verification failed", "verification_code"
                    )
                ],
            )

    customer = customers.get_by_email(email)
    if customer is None:
        customer = customers.save(
            Customer(
                id=uuid4(),
                email=email,
                name=name,
                phone=normalize_phone(inp.phone) or invite.target_phone,
                created_at=now,
                updated_at=now,
            )
        )
    elif affiliates.get_by_customer_id(customer.id):
        return SignupOutput(
            success=False,
            errors=[ValidationError("ALREADY_AFFILIATE", "You are already an affiliate", "email")],
        )

    code = generate_affiliate_code(
        name, lambda c: affiliates.get_by_code(c) is not None, code_random_length
    )
    affiliate = Affiliate(
        id=uuid4(),
        customer_id=customer.id,
        code=code,
        status=AffiliateStatus.ACTIVE,
        created_at=now,
        updated_at=now,
    )
    affiliates.save(affiliate)

    invites.save_signature(
        AgreementSignature(
            id=uuid4(),
            affiliate_id=affiliate.id,
            agreement_version=settings.agreement_version,
            signer_name=name,
            signer_ip_hash=hash_ip(inp.signer_ip, inp.ip_salt) if inp.signer_ip else None,
            signed_at=now,
        )
    )
    invites.save_usage(
        InviteUsage(id=uuid4(), invite_id=invite.id, affiliate_id=affiliate.id, used_at=now)
    )
    invite.times_used += 1
    invites.save(invite)

    logger.info(f"Affiliate {affiliate.code} joined via invite {invite.id}")
    return SignupOutput(success=True, affiliate=affiliate, customer_id=customer.id)
