"""
SQLite repositories for the affiliate program: affiliates, clicks, referrals,
program settings, invites and payouts.
"""

from __future__ import annotations

from dataclasses import asdict, fields
from typing import Any
from uuid import UUID

from src.adapters.sqlite.base import (
    SQLiteRepoBase,
    dt_str,
    from_json,
    parse_dt,
    parse_uuid,
    to_json,
    uuid_str,
)
from src.components.affiliates.models import (
    Affiliate,
    AffiliateClick,
    AffiliateInvite,
    AffiliateSettings,
    AffiliateStatus,
    AgreementSignature,
    InviteUsage,
    Payout,
    PayoutBatch,
    RateType,
    Referral,
    ReferralStatus,
)

_RATE_FIELDS = ("commission_type", "discount_type", "ff_commission_type", "ff_discount_type")


def _rate(value: str | None) -> RateType | None:
    return RateType(value) if value else None


def _rate_value(value: RateType | None) -> str | None:
    return value.value if value else None


def settings_to_json(settings: AffiliateSettings) -> str:
    data = asdict(settings)
    for name in _RATE_FIELDS:
        data[name] = data[name].value
    return to_json(data)


def settings_from_json(raw: str) -> AffiliateSettings:
    data = from_json(raw, {})
    known = {f.name for f in fields(AffiliateSettings)}
    # Unknown keys are dropped so older rows survive model changes.
    data = {k: v for k, v in data.items() if k in known}
    for name in _RATE_FIELDS:
        if name in data:
            data[name] = RateType(data[name])
    return AffiliateSettings(**data)


class SQLiteAffiliateRepo(SQLiteRepoBase):
    _COLUMNS = (
        "id, customer_id, code, status, custom_commission_type, custom_commission_value, "
        "custom_discount_type, custom_discount_value, pending_balance, approved_balance, "
        "paid_balance, total_clicks, total_referrals, payout_account_id, payouts_enabled, "
        "details_submitted, payout_country, created_at, updated_at"
    )

    def get_by_id(self, affiliate_id: UUID) -> Affiliate | None:
        row = self._fetch_one("SELECT * FROM affiliates WHERE id = ?", (str(affiliate_id),))
        return self._map_row(row) if row else None

    def get_by_code(self, code: str) -> Affiliate | None:
        row = self._fetch_one("SELECT * FROM affiliates WHERE code = ?", (code,))
        return self._map_row(row) if row else None

    def get_by_customer_id(self, customer_id: UUID) -> Affiliate | None:
        row = self._fetch_one(
            "SELECT * FROM affiliates WHERE customer_id = ?", (str(customer_id),)
        )
        return self._map_row(row) if row else None

    def list_all(self) -> list[Affiliate]:
        rows = self._fetch_all("SELECT * FROM affiliates ORDER BY created_at DESC")
        return [self._map_row(r) for r in rows]

    def save(self, affiliate: Affiliate) -> Affiliate:
        values = (
            str(affiliate.id),
            str(affiliate.customer_id),
            affiliate.code,
            affiliate.status.value,
            _rate_value(affiliate.custom_commission_type),
            affiliate.custom_commission_value,
            _rate_value(affiliate.custom_discount_type),
            affiliate.custom_discount_value,
            affiliate.pending_balance,
            affiliate.approved_balance,
            affiliate.paid_balance,
            affiliate.total_clicks,
            affiliate.total_referrals,
            affiliate.payout_account_id,
            int(affiliate.payouts_enabled),
            int(affiliate.details_submitted),
            affiliate.payout_country,
            affiliate.created_at.isoformat(),
            affiliate.updated_at.isoformat(),
        )
        updates = ", ".join(
            f"{c}=excluded.{c}" for c in self._COLUMNS.split(", ") if c not in ("id", "created_at")
        )
        self._execute(
            f"INSERT INTO affiliates ({self._COLUMNS}) VALUES ({', '.join('?' * len(values))}) "
            f"ON CONFLICT(id) DO UPDATE SET {updates}",
            values,
        )
        return affiliate

    def save_click(self, click: AffiliateClick) -> AffiliateClick:
        self._execute(
            """
            INSERT INTO affiliate_clicks (
                id, affiliate_id, session_id, ip_hash, user_agent, referrer, landing_url, created_at
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                str(click.id),
                str(click.affiliate_id),
                click.session_id,
                click.ip_hash,
                click.user_agent,
                click.referrer,
                click.landing_url,
                click.created_at.isoformat(),
            ),
        )
        return click

    def get_referral(self, referral_id: UUID) -> Referral | None:
        row = self._fetch_one("SELECT * FROM referrals WHERE id = ?", (str(referral_id),))
        return self._map_referral(row) if row else None

    def get_referral_by_order(self, order_id: UUID) -> Referral | None:
        row = self._fetch_one("SELECT * FROM referrals WHERE order_id = ?", (str(order_id),))
        return self._map_referral(row) if row else None

    def list_referrals(
        self,
        affiliate_id: UUID | None = None,
        status: ReferralStatus | None = None,
    ) -> list[Referral]:
        clauses: list[str] = []
        params: list[Any] = []
        if affiliate_id is not None:
            clauses.append("affiliate_id = ?")
            params.append(str(affiliate_id))
        if status is not None:
            clauses.append("status = ?")
            params.append(status.value)
        where = f"WHERE {' AND '.join(clauses)}" if clauses else ""
        rows = self._fetch_all(
            f"SELECT * FROM referrals {where} ORDER BY created_at DESC", tuple(params)
        )
        return [self._map_referral(r) for r in rows]

    def save_referral(self, referral: Referral) -> Referral:
        self._execute(
            """
            INSERT INTO referrals (
                id, affiliate_id, order_id, order_amount, commission_amount, commission_rate,
                status, fraud_reason, is_friends_family, payout_id, created_at,
                approved_at, paid_at, voided_at
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            ON CONFLICT(id) DO UPDATE SET
                status=excluded.status,
                fraud_reason=excluded.fraud_reason,
                payout_id=excluded.payout_id,
                approved_at=excluded.approved_at,
                paid_at=excluded.paid_at,
                voided_at=excluded.voided_at
            """,
            (
                str(referral.id),
                str(referral.affiliate_id),
                str(referral.order_id),
                referral.order_amount,
                referral.commission_amount,
                referral.commission_rate,
                referral.status.value,
                referral.fraud_reason,
                int(referral.is_friends_family),
                uuid_str(referral.payout_id),
                referral.created_at.isoformat(),
                dt_str(referral.approved_at),
                dt_str(referral.paid_at),
                dt_str(referral.voided_at),
            ),
        )
        return referral

    def get_settings(self) -> AffiliateSettings | None:
        row = self._fetch_one("SELECT settings_json FROM affiliate_settings WHERE id = 1")
        return settings_from_json(row["settings_json"]) if row else None

    def save_settings(self, settings: AffiliateSettings) -> AffiliateSettings:
        self._execute(
            """
            INSERT INTO affiliate_settings (id, settings_json) VALUES (1, ?)
            ON CONFLICT(id) DO UPDATE SET settings_json=excluded.settings_json
            """,
            (settings_to_json(settings),),
        )
        return settings

    def _map_row(self, row: dict[str, Any]) -> Affiliate:
        return Affiliate(
            id=UUID(row["id"]),
            customer_id=UUID(row["customer_id"]),
            code=row["code"],
            status=AffiliateStatus(row["status"]),
            custom_commission_type=_rate(row["custom_commission_type"]),
            custom_commission_value=row["custom_commission_value"],
            custom_discount_type=_rate(row["custom_discount_type"]),
            custom_discount_value=row["custom_discount_value"],
            pending_balance=row["pending_balance"],
            approved_balance=row["approved_balance"],
            paid_balance=row["paid_balance"],
            total_clicks=row["total_clicks"],
            total_referrals=row["total_referrals"],
            payout_account_id=row["payout_account_id"],
            payouts_enabled=bool(row["payouts_enabled"]),
            details_submitted=bool(row["details_submitted"]),
            payout_country=row["payout_country"],
            created_at=parse_dt(row["created_at"]),  # type: ignore[arg-type]
            updated_at=parse_dt(row["updated_at"]),  # type: ignore[arg-type]
        )

    def _map_referral(self, row: dict[str, Any]) -> Referral:
        return Referral(
            id=UUID(row["id"]),
            affiliate_id=UUID(row["affiliate_id"]),
            order_id=UUID(row["order_id"]),
            order_amount=row["order_amount"],
            commission_amount=row["commission_amount"],
            commission_rate=row["commission_rate"],
            status=ReferralStatus(row["status"]),
            fraud_reason=row["fraud_reason"],
            is_friends_family=bool(row["is_friends_family"]),
            payout_id=parse_uuid(row["payout_id"]),
            created_at=parse_dt(row["created_at"]),  # type: ignore[arg-type]
            approved_at=parse_dt(row["approved_at"]),
            paid_at=parse_dt(row["paid_at"]),
            voided_at=parse_dt(row["voided_at"]),
        )


class SQLiteInviteRepo(SQLiteRepoBase):
    def get_by_id(self, invite_id: UUID) -> AffiliateInvite | None:
        row = self._fetch_one("SELECT * FROM affiliate_invites WHERE id = ?", (str(invite_id),))
        return self._map_row(row) if row else None

    def get_by_code(self, invite_code: str) -> AffiliateInvite | None:
        row = self._fetch_one(
            "SELECT * FROM affiliate_invites WHERE invite_code = ?", (invite_code,)
        )
        return self._map_row(row) if row else None

    def list_all(self) -> list[AffiliateInvite]:
        rows = self._fetch_all("SELECT * FROM affiliate_invites ORDER BY created_at DESC")
        return [self._map_row(r) for r in rows]

    def save(self, invite: AffiliateInvite) -> AffiliateInvite:
        self._execute(
            """
            INSERT INTO affiliate_invites (
                id, invite_code, target_email, target_phone, expires_at, max_uses,
                times_used, created_by, notes, created_at
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            ON CONFLICT(id) DO UPDATE SET
                target_email=excluded.target_email,
                target_phone=excluded.target_phone,
                expires_at=excluded.expires_at,
                max_uses=excluded.max_uses,
                times_used=excluded.times_used,
                notes=excluded.notes
            """,
            (
                str(invite.id),
                invite.invite_code,
                invite.target_email,
                invite.target_phone,
                dt_str(invite.expires_at),
                invite.max_uses,
                invite.times_used,
                uuid_str(invite.created_by),
                invite.notes,
                invite.created_at.isoformat(),
            ),
        )
        return invite

    def save_usage(self, usage: InviteUsage) -> InviteUsage:
        self._execute(
            "INSERT INTO affiliate_invite_usages (id, invite_id, affiliate_id, used_at) "
            "VALUES (?, ?, ?, ?)",
            (str(usage.id), str(usage.invite_id), str(usage.affiliate_id), usage.used_at.isoformat()),
        )
        return usage

    def save_signature(self, signature: AgreementSignature) -> AgreementSignature:
        self._execute(
            """
            INSERT INTO affiliate_agreement_signatures (
                id, affiliate_id, agreement_version, signer_name, signer_ip_hash, signed_at
            ) VALUES (?, ?, ?, ?, ?, ?)
            """,
            (
                str(signature.id),
                str(signature.affiliate_id),
                signature.agreement_version,
                signature.signer_name,
                signature.signer_ip_hash,
                signature.signed_at.isoformat(),
            ),
        )
        return signature

    def _map_row(self, row: dict[str, Any]) -> AffiliateInvite:
        return AffiliateInvite(
            id=UUID(row["id"]),
            invite_code=row["invite_code"],
            target_email=row["target_email"],
            target_phone=row["target_phone"],
            expires_at=parse_dt(row["expires_at"]),
            max_uses=row["max_uses"],
            times_used=row["times_used"],
            created_by=parse_uuid(row["created_by"]),
            notes=row["notes"],
            created_at=parse_dt(row["created_at"]),  # type: ignore[arg-type]
        )


class SQLitePayoutRepo(SQLiteRepoBase):
    def get_batch(self, batch_id: str) -> PayoutBatch | None:
        row = self._fetch_one("SELECT * FROM payout_batches WHERE id = ?", (batch_id,))
        return self._map_batch(row) if row else None

    def list_batches(self) -> list[PayoutBatch]:
        rows = self._fetch_all("SELECT * FROM payout_batches ORDER BY created_at DESC")
        return [self._map_batch(r) for r in rows]

    def save_batch(self, batch: PayoutBatch) -> PayoutBatch:
        self._execute(
            """
            INSERT INTO payout_batches (
                id, total_amount, payout_count, status, created_at, executed_at
            ) VALUES (?, ?, ?, ?, ?, ?)
            ON CONFLICT(id) DO UPDATE SET
                total_amount=excluded.total_amount,
                payout_count=excluded.payout_count,
                status=excluded.status,
                executed_at=excluded.executed_at
            """,
            (
                batch.id,
                batch.total_amount,
                batch.payout_count,
                batch.status,
                batch.created_at.isoformat(),
                dt_str(batch.executed_at),
            ),
        )
        return batch

    def list_payouts(self, batch_id: str) -> list[Payout]:
        rows = self._fetch_all(
            "SELECT * FROM payouts WHERE batch_id = ? ORDER BY created_at", (batch_id,)
        )
        return [
            Payout(
                id=UUID(r["id"]),
                affiliate_id=UUID(r["affiliate_id"]),
                batch_id=r["batch_id"],
                amount=r["amount"],
                referral_count=r["referral_count"],
                status=r["status"],
                created_at=parse_dt(r["created_at"]),  # type: ignore[arg-type]
                paid_at=parse_dt(r["paid_at"]),
            )
            for r in rows
        ]

    def save_payout(self, payout: Payout) -> Payout:
        self._execute(
            """
            INSERT INTO payouts (
                id, affiliate_id, batch_id, amount, referral_count, status, created_at, paid_at
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?)
            ON CONFLICT(id) DO UPDATE SET
                status=excluded.status,
                paid_at=excluded.paid_at
            """,
            (
                str(payout.id),
                str(payout.affiliate_id),
                payout.batch_id,
                payout.amount,
                payout.referral_count,
                payout.status,
                payout.created_at.isoformat(),
                dt_str(payout.paid_at),
            ),
        )
        return payout

    def _map_batch(self, row: dict[str, Any]) -> PayoutBatch:
        return PayoutBatch(
            id=row["id"],
            total_amount=row["total_amount"],
            payout_count=row["payout_count"],
            status=row["status"],
            created_at=parse_dt(row["created_at"]),  # type: ignore[arg-type]
            executed_at=parse_dt(row["executed_at"]),
        )
