"""One-shot environment and detection report.

Captures a single frame, loads the templates, runs both detections once and
logs timings and intermediate ratios to the observability sink. Nothing is
clicked. Optionally saves the captured frame as a debug artifact.
"""
from __future__ import annotations

import logging
import platform
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Tuple

import cv2  # type: ignore

from ...config.vision import DetectionProfile
from ...core.status import StatusSink, send_log
from ...io.errors import CaptureFailure, TemplateLoadFailure
from ...io.templates import TEMPLATE_FILES
from ...vision.engine import DetectionEngine
from ...vision.matcher import MatchCandidate

logger = logging.getLogger(__name__)


@dataclass
class DiagnosticsReport:
    os_name: str = ""
    frame_size: Optional[Tuple[int, int]] = None
    capture_error: Optional[str] = None
    template_dir: Optional[Path] = None
    templates_ok: bool = False
    template_error: Optional[str] = None
    matching_size: Optional[Tuple[int, int]] = None
    accept_size: Optional[Tuple[int, int]] = None
    match_screen: Optional[bool] = None
    match_ms: float = 0.0
    button: Optional[MatchCandidate] = None
    button_ms: float = 0.0
    click_supported: Optional[bool] = None
    details: Dict[str, Any] = field(default_factory=dict)
    artifact: Optional[Path] = None
    total_ms: float = 0.0
    lines: List[str] = field(default_factory=list)


def _size(img) -> Tuple[int, int]:
    return int(img.shape[1]), int(img.shape[0])


def run_diagnostics(
    frame_source,
    store,
    sink: Optional[StatusSink],
    profile: DetectionProfile,
    click_probe: Optional[Callable[[], bool]] = None,
    engine_factory: Callable = DetectionEngine,
    artifacts_dir: Optional[Path] = None,
) -> DiagnosticsReport:
    report = DiagnosticsReport(os_name=platform.system())
    t_start = time.perf_counter()

    def emit(line: str) -> None:
        report.lines.append(line)
        logger.info("diagnostics: %s", line)
        send_log(sink, line)

    frame = None
    try:
        frame = frame_source.capture()
        report.frame_size = _size(frame)
        emit(f"Screen size: {report.frame_size[0]}x{report.frame_size[1]}")
    except CaptureFailure as e:
        report.capture_error = str(e)
        emit(f"Screen capture failed: {e}")
    emit(f"OS: {report.os_name}")

    base_dir = getattr(store, "base_dir", None)
    if base_dir is not None:
        report.template_dir = Path(base_dir)
        emit(f"Templates directory: {report.template_dir}")

    engine = None
    try:
        templates = store.load_all()
        report.templates_ok = True
        report.accept_size = _size(templates.accept)
        report.matching_size = _size(templates.matching)
        emit("Templates loaded")
        emit(f"Accept button template size: {report.accept_size[0]}x{report.accept_size[1]}")
        emit(f"Match screen template size: {report.matching_size[0]}x{report.matching_size[1]}")
        engine = engine_factory(templates, profile)
    except TemplateLoadFailure as e:
        report.template_error = str(e)
        emit(f"Template load error: {e}")
        path_for = getattr(store, "path_for", None)
        if path_for is not None:
            for name in TEMPLATE_FILES:
                emit(f"Expected {name} template at: {path_for(name)}")

    if frame is not None and engine is not None:
        t0 = time.perf_counter()
        report.match_screen = engine.is_match_screen_present(frame)
        report.match_ms = (time.perf_counter() - t0) * 1000.0
        emit(f"Match screen detection: {report.match_ms:.0f}ms (result: {report.match_screen})")

        t0 = time.perf_counter()
        report.button = engine.find_accept_button(frame)
        report.button_ms = (time.perf_counter() - t0) * 1000.0
        if report.button is not None:
            b = report.button
            emit(
                f"Accept button detection: {report.button_ms:.0f}ms (result: True, "
                f"score {b.score:.3f}, position {b.x},{b.y}, method {b.method})"
            )
        else:
            emit(f"Accept button detection: {report.button_ms:.0f}ms (result: False)")

        report.details = dict(getattr(engine, "last_debug", {}) or {})
        screen = report.details.get("match_screen") or {}
        if screen.get("text_ratio") is not None:
            emit(f"Near-white text ratio: {screen['text_ratio']:.3f}")
        button = report.details.get("accept_button") or {}
        for key in ("cluster_size", "edge_ratio"):
            if key in button:
                emit(f"Fallback {key.replace('_', ' ')}: {button[key]}")

    if click_probe is not None:
        try:
            report.click_supported = bool(click_probe())
        except Exception:
            report.click_supported = False
        emit("Pointer control available" if report.click_supported else "Pointer control unavailable")

    if frame is not None and artifacts_dir is not None:
        try:
            out_dir = Path(artifacts_dir)
            out_dir.mkdir(parents=True, exist_ok=True)
            out = out_dir / time.strftime("diagnostics_%Y%m%d_%H%M%S.png")
            if cv2.imwrite(str(out), cv2.cvtColor(frame[:, :, :3], cv2.COLOR_RGB2BGR)):
                report.artifact = out
                emit(f"Frame saved: {out}")
        except Exception as e:
            logger.warning("diagnostics: artifact save failed: %s", e)

    report.total_ms = (time.perf_counter() - t_start) * 1000.0
    emit(f"Diagnostics complete: {report.total_ms:.0f}ms")
    return report
