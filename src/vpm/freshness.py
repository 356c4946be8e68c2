# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Freshness Record

Single responsibility: remember when each package's metadata was last fetched
from the package source (vpm.json next to the root package.json), so that
resolution can prefer an installed copy until it is due for a re-check.
"""

import logging
from datetime import datetime, timedelta, UTC
from pathlib import Path
from typing import Any, Dict, Optional

from .utils import read_json_file, write_json_file

logger = logging.getLogger(__name__)

STATE_FILE = "vpm.json"


class FreshnessRecord:
    """Per-root "last updated" timestamps, loaded once and saved explicitly"""

    def __init__(self, state_file: Path, interval: timedelta = timedelta(days=1)):
        """
        Initialize freshness record.

        Args:
            state_file: Path to vpm.json
            interval: Age after which an installed package is checked again
        """
        self.state_file = Path(state_file)
        self.interval = interval
        self._data: Dict[str, Any] = {}
        self._dirty = False

    def load(self) -> "FreshnessRecord":
        """Read the state file; a missing or broken file starts empty"""
        self._data = {}
        self._dirty = False
        if not self.state_file.exists():
            return self
        try:
            data = read_json_file(self.state_file)
            if isinstance(data, dict):
                self._data = dict(data)
        except (OSError, ValueError) as e:
            logger.debug(f"Could not open {self.state_file}: {e}")
        return self

    def save(self):
        """Write the state file if anything changed"""
        # don't bother to write an empty file
        if not self._data or not self._dirty:
            return
        try:
            write_json_file(self.state_file, self._data)
            self._dirty = False
        except OSError as e:
            logger.warning(f"Could not write {self.state_file}: {e}")

    def _timestamps(self) -> Dict[str, Any]:
        vpm = self._data.get("vpm")
        if not isinstance(vpm, dict):
            return {}
        last_update = vpm.get("lastUpdate")
        return last_update if isinstance(last_update, dict) else {}

    def last_update(self, package_id: str) -> Optional[datetime]:
        value = self._timestamps().get(package_id)
        if not isinstance(value, str):
            return None
        try:
            stamp = datetime.fromisoformat(value)
        except ValueError:
            return None
        if stamp.tzinfo is None:
            stamp = stamp.replace(tzinfo=UTC)
        return stamp

    def needs_check(self, package_id: str, now: Optional[datetime] = None) -> bool:
        """True if the package was never fetched or the last fetch is older than the interval"""
        stamp = self.last_update(package_id)
        if stamp is None:
            return True
        now = now or datetime.now(UTC)
        return now - stamp > self.interval

    def mark_up_to_date(self, package_id: str, now: Optional[datetime] = None):
        logger.debug(f"markUpToDate({package_id})")
        if not isinstance(self._data.get("vpm"), dict):
            self._data["vpm"] = {}
        vpm = self._data["vpm"]
        if not isinstance(vpm.get("lastUpdate"), dict):
            vpm["lastUpdate"] = {}
        vpm["lastUpdate"][package_id] = (now or datetime.now(UTC)).isoformat()
        self._dirty = True
