"""Per-user JSON persistence and the nickname session.

Each nickname gets ``<data dir>/users/<nickname>-<hash>.json`` holding the full
transaction list. The file is rewritten wholesale after every mutation.
The logged-in nickname lives in ``<data dir>/session.json``.
"""

from __future__ import annotations

import hashlib
import json
from pathlib import Path
from typing import Iterable, List, Optional

from . import config
from .exceptions import PersistenceError
from .logging_setup import get_logger
from .models import Transaction, transaction_from_dict, transaction_to_dict

logger = get_logger(__name__)


def safe_filename(name: str, default: str = 'user', max_length: Optional[int] = 64) -> str:
    """Create a safe filename from a nickname.

    Keeps alphanumerics (accents included), underscores and hyphens and
    turns spaces into underscores.

    Example:
        >>> safe_filename("João Silva!")
        'João_Silva'
    """
    if not name:
        return default

    cleaned = ''.join(c for c in name if c.isalnum() or c in {' ', '_', '-'})
    cleaned = cleaned.strip().replace(' ', '_')
    while '__' in cleaned:
        cleaned = cleaned.replace('__', '_')
    if max_length is not None and len(cleaned) > max_length:
        cleaned = cleaned[:max_length]
    cleaned = cleaned.rstrip('_')
    return cleaned if cleaned else default


def normalize_username(name: Optional[str]) -> str:
    """Trim a nickname; blank nicknames are rejected."""
    if name is None or not str(name).strip():
        raise ValueError("Nickname cannot be empty")
    return str(name).strip()


def user_filename(username: str) -> str:
    """File name for a nickname's transactions.

    The readable part comes from ``safe_filename``; the hash suffix keeps
    nicknames that sanitize to the same text in separate files.
    """
    name = normalize_username(username)
    digest = hashlib.sha256(name.encode('utf-8')).hexdigest()[:12]
    return f"{safe_filename(name)}-{digest}.json"


class TransactionRepository:
    """Stores one user's transactions as a JSON array."""

    def __init__(self, username: str, data_dir: Optional[Path] = None):
        self.username = normalize_username(username)
        root = Path(data_dir) if data_dir is not None else config.DATA_DIR
        self.users_dir = root / 'users'

    @property
    def path(self) -> Path:
        return self.users_dir / user_filename(self.username)

    def load(self) -> List[Transaction]:
        """Load stored transactions.

        Missing files, invalid JSON and non-list payloads all yield an empty
        list. Individual records are normalized on the way in.
        """
        target = self.path
        if not target.exists():
            return []
        try:
            with target.open('r', encoding='utf-8') as handle:
                data = json.load(handle)
        except (json.JSONDecodeError, OSError) as exc:
            logger.error("Could not read %s: %s", target, exc)
            return []
        if not isinstance(data, list):
            logger.warning("Ignoring %s: expected a JSON array", target)
            return []

        transactions: List[Transaction] = []
        seen = set()
        for item in data:
            if not isinstance(item, dict):
                continue
            transaction = transaction_from_dict(item)
            if transaction.id in seen:
                logger.warning("Skipping duplicate transaction id %s in %s", transaction.id, target)
                continue
            seen.add(transaction.id)
            transactions.append(transaction)
        logger.info("Loaded %d transactions for %s", len(transactions), self.username)
        return transactions

    def save(self, transactions: Iterable[Transaction]) -> None:
        """Write the full list, replacing whatever was stored.

        Raises:
            PersistenceError: If the file cannot be written
        """
        target = self.path
        payload = [transaction_to_dict(t) for t in transactions]
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            tmp = target.with_suffix('.json.tmp')
            with tmp.open('w', encoding='utf-8') as handle:
                json.dump(payload, handle, ensure_ascii=False, indent=2)
            tmp.replace(target)
        except OSError as exc:
            raise PersistenceError(f"Failed to save transactions to {target}: {exc}") from exc

    def delete(self) -> None:
        """Remove the stored file; missing files are ignored."""
        target = self.path
        if not target.exists():
            return
        try:
            target.unlink()
        except OSError as exc:
            raise PersistenceError(f"Failed to delete {target}: {exc}") from exc


# ---------------------------------------------------------------------------
# Session
# ---------------------------------------------------------------------------


def _session_path(data_dir: Optional[Path]) -> Path:
    if data_dir is None:
        return config.SESSION_FILE
    return Path(data_dir) / 'session.json'


def load_session_user(data_dir: Optional[Path] = None) -> Optional[str]:
    """Return the remembered nickname, if any."""
    target = _session_path(data_dir)
    if not target.exists():
        return None
    try:
        with target.open('r', encoding='utf-8') as handle:
            data = json.load(handle)
    except (json.JSONDecodeError, OSError):
        return None
    if not isinstance(data, dict):
        return None
    username = data.get('username')
    if not isinstance(username, str) or not username.strip():
        return None
    return username.strip()


def save_session_user(username: str, data_dir: Optional[Path] = None) -> str:
    name = normalize_username(username)
    target = _session_path(data_dir)
    try:
        target.parent.mkdir(parents=True, exist_ok=True)
        with target.open('w', encoding='utf-8') as handle:
            json.dump({'username': name}, handle, ensure_ascii=False)
    except OSError as exc:
        raise PersistenceError(f"Failed to save session to {target}: {exc}") from exc
    return name


def clear_session_user(data_dir: Optional[Path] = None) -> None:
    target = _session_path(data_dir)
    if target.exists():
        try:
            target.unlink()
        except OSError as exc:
            raise PersistenceError(f"Failed to clear session {target}: {exc}") from exc
