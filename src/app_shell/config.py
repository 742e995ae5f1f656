import logging
import os
from collections.abc import Mapping
from pathlib import Path
from uuid import uuid4

from src.adapters.sqlite.repos import SQLiteUserRepo
from src.api.auth_utils import get_password_hash
from src.app_shell.rate_limit import TimePort
from src.domain.entities import User
from src.rules.models import Rules

logger = logging.getLogger(__name__)

BOOTSTRAP_EMAIL_ENV = "PP_BOOTSTRAP_EMAIL"
BOOTSTRAP_PASSWORD_ENV = "PP_BOOTSTRAP_PASSWORD"


def validate_ops_rules(rules: Rules, data_dir: Path, env: Mapping[str, str] | None = None) -> None:
    """
    Validate operational requirements before startup.
    Raises ValueError listing what is missing.
    """
    env = os.environ if env is None else env
    ops = rules.ops

    if ops.data_dir_required:
        data_dir.mkdir(parents=True, exist_ok=True)
        if not os.access(data_dir, os.W_OK):
            raise ValueError(f"Data directory is not writable: {data_dir}")

    missing = [name for name in ops.required_env if not env.get(name)]
    if missing:
        raise ValueError(f"Missing required environment variables: {', '.join(missing)}")

    logger.info("Configuration validated")


def bootstrap_owner(
    rules: Rules,
    user_repo: SQLiteUserRepo,
    time: TimePort,
    env: Mapping[str, str] | None = None,
) -> User | None:
    """Create the first owner account when the user table is empty."""
    env = os.environ if env is None else env
    bootstrap = rules.ops.bootstrap_admin
    if not bootstrap.enabled_if_no_users or user_repo.list_all():
        return None

    missing = [name for name in bootstrap.required_env_when_enabled if not env.get(name)]
    if missing:
        logger.warning(f"Owner bootstrap skipped, missing: {', '.join(missing)}")
        return None

    email = env.get(BOOTSTRAP_EMAIL_ENV, "").strip().lower()
    password = env.get(BOOTSTRAP_PASSWORD_ENV, "")
    if not email or len(password) < rules.auth.password_hashing.min_length:
        logger.warning("Owner bootstrap skipped, email or password invalid")
        return None

    now = time.now_utc()
    owner = User(
        id=uuid4(),
        email=email,
        display_name="Owner",
        password_hash=get_password_hash(password),
        roles=["owner"],
        status="active",
        created_at=now,
        updated_at=now,
    )
    user_repo.save(owner)
    logger.info("Owner account bootstrapped")
    return owner
