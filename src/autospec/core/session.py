"""
Run Session Management

Owns the on-disk layout of one run:

    <trajectories>/<runId>/
        combined.log
        screenshot-<n>.png / .html                 survey frames
        screenshot-<specId>-<step>.png / .html     per-step captures
        *.webm                                     context videos
        report.json
        successfulTests-<runId>.spec.js
"""

import json
import logging
import random
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional

import aiofiles

logger = logging.getLogger(__name__)

LOG_FORMAT = '%(asctime)s [%(levelname)s] - %(message)s'


def generate_run_id() -> str:
    """UTC timestamp digits plus a four digit random suffix."""
    timestamp = datetime.now(timezone.utc).strftime("%Y%m%d%H%M%S%f")
    return f"{timestamp}_{random.randint(0, 9999):04d}"


class SessionManager:
    """
    Manages one run's directory, combined log and persisted artifacts.
    """

    def __init__(self, trajectories_path: str = "./trajectories", run_id: Optional[str] = None):
        self.run_id = run_id or generate_run_id()
        self.session_dir = Path(trajectories_path) / self.run_id
        self.session_dir.mkdir(parents=True, exist_ok=True)

        self.screenshots_taken: List[str] = []
        self._log_handler: Optional[logging.Handler] = None

        logger.info(f"📁 Session directory created: {self.session_dir}")

    @property
    def log_path(self) -> Path:
        return self.session_dir / "combined.log"

    @property
    def replay_path(self) -> Path:
        return self.session_dir / f"successfulTests-{self.run_id}.spec.js"

    @property
    def report_path(self) -> Path:
        return self.session_dir / "report.json"

    def attach_log_file(self) -> None:
        """Mirror the root logger into combined.log for this run."""
        if self._log_handler:
            return
        handler = logging.FileHandler(self.log_path, encoding='utf-8')
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        logging.getLogger().addHandler(handler)
        self._log_handler = handler

    def detach_log_file(self) -> None:
        if not self._log_handler:
            return
        logging.getLogger().removeHandler(self._log_handler)
        self._log_handler.close()
        self._log_handler = None

    def frame_path(self, name: str) -> Path:
        return self.session_dir / f"{name}.png"

    async def save_capture(self, name: str, screenshot: bytes, html: str) -> str:
        """Persist an annotated screenshot and its HTML snapshot side by side."""
        png_path = self.frame_path(name)
        async with aiofiles.open(png_path, 'wb') as f:
            await f.write(screenshot)
        async with aiofiles.open(png_path.with_suffix('.html'), 'w', encoding='utf-8') as f:
            await f.write(html)

        self.screenshots_taken.append(str(png_path))
        logger.debug(f"📸 Capture saved: {png_path.name}")
        return str(png_path)

    async def save_replay_tests(self, source: str) -> str:
        async with aiofiles.open(self.replay_path, 'w', encoding='utf-8') as f:
            await f.write(source)
        logger.info(f"Successful tests written to {self.replay_path}")
        return str(self.replay_path)

    async def save_report(self, report: Dict[str, Any]) -> str:
        async with aiofiles.open(self.report_path, 'w', encoding='utf-8') as f:
            await f.write(json.dumps(report, indent=2, default=str))
        logger.info(f"📋 Report saved: {self.report_path}")
        return str(self.report_path)

    def get_session_info(self) -> Dict[str, Any]:
        return {
            'run_id': self.run_id,
            'session_dir': str(self.session_dir),
            'screenshots_taken': len(self.screenshots_taken),
        }
