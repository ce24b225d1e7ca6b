"""
Profile store backed by SQLite.

Saving a profile whose payload is unchanged is a no-op. A changed payload
bumps the version and appends a history entry listing the changed top-level
fields.
"""

import json
import uuid
from pathlib import Path
from typing import Any, Dict, List

from sqlalchemy.exc import SQLAlchemyError

from ..database import ProfileRecord, ProfileVersion, get_session, init_database
from ..errors import CollaboratorUnavailable, ProfileNotFoundError
from ..logger import get_logger
from ..models import Profile

logger = get_logger()


def diff_dict(old: Dict[str, Any], new: Dict[str, Any]) -> Dict[str, Dict[str, Any]]:
    changed = {}
    keys = set(old.keys()) | set(new.keys())
    for k in keys:
        ov = old.get(k)
        nv = new.get(k)
        if ov != nv:
            changed[k] = {"old": ov, "new": nv}
    return changed


class SqlProfileStore:
    def __init__(self, db_path: Path):
        self.db_path = db_path
        init_database(db_path)

    def load_profile(self, profile_id: str) -> Profile:
        session = get_session(self.db_path)
        try:
            record = session.get(ProfileRecord, profile_id)
            if record is None:
                raise ProfileNotFoundError("Profile not found", profile_id=profile_id)
            return Profile.model_validate_json(record.payload)
        except SQLAlchemyError as e:
            raise CollaboratorUnavailable(f"Profile store error: {e}", profile_id=profile_id) from e
        finally:
            session.close()

    def save_profile(self, profile: Profile) -> str:
        """Insert or update a profile and return its id (generated when missing)."""
        if not profile.profile_id:
            profile = profile.model_copy(update={"profile_id": uuid.uuid4().hex})
        data = profile.to_dict()
        payload = json.dumps(data, sort_keys=True)

        session = get_session(self.db_path)
        try:
            record = session.get(ProfileRecord, profile.profile_id)
            if record is None:
                record = ProfileRecord(
                    profile_id=profile.profile_id,
                    owner_id=profile.owner_id,
                    payload=payload,
                    version=1,
                )
                session.add(record)
                session.add(ProfileVersion(profile_id=profile.profile_id, version=1, payload=payload,
                                           changed_fields=json.dumps(sorted(data.keys()))))
                status = "new"
            else:
                changed = diff_dict(json.loads(record.payload), data)
                if not changed:
                    logger.debug("Profile unchanged", profile_id=profile.profile_id)
                    return profile.profile_id
                record.version += 1
                record.payload = payload
                record.owner_id = profile.owner_id
                session.add(ProfileVersion(profile_id=profile.profile_id, version=record.version,
                                           payload=payload, changed_fields=json.dumps(sorted(changed))))
                status = "updated"
            session.commit()
        except SQLAlchemyError as e:
            session.rollback()
            raise CollaboratorUnavailable(f"Profile store error: {e}", profile_id=profile.profile_id) from e
        finally:
            session.close()

        logger.info("Saved profile", profile_id=profile.profile_id, status=status)
        return profile.profile_id

    def list_profiles(self, owner_id: str) -> List[Profile]:
        session = get_session(self.db_path)
        try:
            records = (
                session.query(ProfileRecord)
                .filter_by(owner_id=owner_id)
                .order_by(ProfileRecord.profile_id)
                .all()
            )
            return [Profile.model_validate_json(r.payload) for r in records]
        except SQLAlchemyError as e:
            raise CollaboratorUnavailable(f"Profile store error: {e}", owner_id=owner_id) from e
        finally:
            session.close()

    def list_versions(self, profile_id: str) -> List[Dict[str, Any]]:
        """Version history, oldest first: version number, changed fields and timestamp."""
        session = get_session(self.db_path)
        try:
            rows = (
                session.query(ProfileVersion)
                .filter_by(profile_id=profile_id)
                .order_by(ProfileVersion.version)
                .all()
            )
            return [
                {
                    "version": r.version,
                    "changed_fields": json.loads(r.changed_fields),
                    "created_at": r.created_at.isoformat(),
                }
                for r in rows
            ]
        finally:
            session.close()
