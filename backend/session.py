"""
Analysis Session - caller-owned form state around the analyzer

Holds what the upload form keeps between edits: the current submission
snapshot, the selected tab, whether an analysis is in flight, and the
last report. The analyzer itself stays stateless.
"""

import dataclasses
import logging
from typing import Optional

from analyzer import CopyrightAnalyzer
from models import AnalysisReport, SubmissionInput

logger = logging.getLogger(__name__)

TAB_UPLOAD = "upload"
TAB_RESULTS = "results"
TABS = (TAB_UPLOAD, TAB_RESULTS)

# File kinds accepted by attach_file() -> SubmissionInput attribute
FILE_FIELDS = {
    "video": "video_file",
    "audio": "audio_file",
    "thumbnail": "thumbnail_file",
}

_EDITABLE_FIELDS = {
    f.name for f in dataclasses.fields(SubmissionInput)
} - set(FILE_FIELDS.values()) - {"has_thumbnail"}


class AnalysisSession:
    """
    Form state for one creator.

    Every edit swaps in a new SubmissionInput, so a report always refers
    to the snapshot it was computed from.
    """

    def __init__(self, submission: Optional[SubmissionInput] = None):
        self.submission = submission or SubmissionInput()
        self.active_tab = TAB_UPLOAD
        self.is_analyzing = False
        self.report: Optional[AnalysisReport] = None

    def update_field(self, name: str, value) -> SubmissionInput:
        """Replace one form field; file fields go through attach_file()"""
        if name not in _EDITABLE_FIELDS:
            raise ValueError(f"Unknown or read-only form field: {name}")
        self.submission = dataclasses.replace(self.submission, **{name: value})
        return self.submission

    def attach_file(self, kind: str, file_name: Optional[str]) -> SubmissionInput:
        """Attach (or clear with None) an uploaded file by kind"""
        field_name = FILE_FIELDS.get(kind)
        if field_name is None:
            raise ValueError(f"Unknown file kind: {kind}")
        changes = {field_name: file_name}
        if kind == "thumbnail":
            changes["has_thumbnail"] = file_name is not None
        self.submission = dataclasses.replace(self.submission, **changes)
        return self.submission

    @property
    def can_analyze(self) -> bool:
        return bool((self.submission.title or "").strip()) and not self.is_analyzing

    def select_tab(self, tab: str) -> None:
        if tab not in TABS:
            raise ValueError(f"Unknown tab: {tab}")
        if tab == TAB_RESULTS and self.report is None:
            raise ValueError("No analysis results yet")
        self.active_tab = tab

    async def run(self, analyzer: CopyrightAnalyzer) -> AnalysisReport:
        """
        Analyze the current snapshot and switch to the results tab.

        The in-flight flag is cleared on success, failure and
        cancellation alike; a cancelled run leaves the previous report.
        """
        if not self.can_analyze:
            raise ValueError("Analysis requires a title and no analysis in progress")

        snapshot = self.submission
        self.is_analyzing = True
        try:
            report = await analyzer.analyze(snapshot)
        finally:
            self.is_analyzing = False

        self.report = report
        self.active_tab = TAB_RESULTS
        logger.info(f"Session analysis complete: {report.overall_risk}")
        return report
