#!/usr/bin/env -S uv run --script
# /// script
# requires-python = ">=3.11"
# dependencies = [
#     "httpx>=0.25.0",
#     "websockets>=13.0",
#     "fastmcp",
# ]
# ///
"""Rescale Steam desktop notification toasts by patching the steamui chunks.

Patches the toast width/heights and container class in the packed JavaScript
chunk, adds (or removes) a scale rule in the CSS chunk, and can restart the
client's SharedJSContext over the CDP debug port so the change shows up.

Usage:
    sft_steam_toasts.py scale <steam_dir> [scale] [-r] [-u URL] [-T SECONDS]
    sft_steam_toasts.py status <steam_dir>
    sft_steam_toasts.py contexts [-u URL]
    sft_steam_toasts.py restart [-u URL] [-T SECONDS]
    sft_steam_toasts.py mcp-stdio

Examples:
    sft_steam_toasts.py scale ~/.steam/steam 1.5 --restart
    sft_steam_toasts.py scale ~/.steam/steam          # reset to x1
    sft_steam_toasts.py status ~/.steam/steam

Steam must run with -cef-enable-debugging for contexts/restart to work.
"""

import argparse
import asyncio
import itertools
import json
import math
import os
import re
import shutil
import sys
import threading
import time
from dataclasses import asdict, dataclass
from datetime import datetime, timezone
from decimal import ROUND_HALF_UP, Decimal
from pathlib import Path
from typing import Any

import httpx
from websockets.asyncio.client import connect
from websockets.exceptions import WebSocketException


# =============================================================================
# LOGGING
# =============================================================================
_LEVELS = {"TRACE": 5, "DEBUG": 10, "INFO": 20, "WARN": 30, "ERROR": 40, "FATAL": 50}
_THRESHOLD = _LEVELS.get(os.environ.get("SFB_LOG_LEVEL", "INFO"), 20)
_LOG_DIR = os.environ.get("SFB_LOG_DIR", "")
_SCRIPT = Path(__file__).stem
_LOG = (
    Path(_LOG_DIR) / f"{_SCRIPT}_log.tsv"
    if _LOG_DIR
    else Path(__file__).parent / f"{_SCRIPT}_log.tsv"
)
_HEADER = "#timestamp\tscript\tlevel\tevent\tmessage\tdetail\tmetrics\ttrace\n"


def _log(
    level: str,
    event: str,
    msg: str,
    *,
    detail: str = "",
    metrics: str = "",
    trace: str = "",
):
    """Append TSV log line. Logging never crashes the main flow."""
    if _LEVELS.get(level, 20) < _THRESHOLD:
        return
    try:
        ts = datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%S")
        write_header = not _LOG.exists()
        with open(_LOG, "a") as f:
            if write_header:
                f.write(_HEADER)
            f.write(f"{ts}\t{_SCRIPT}\t{level}\t{event}\t{msg}\t{detail}\t{metrics}\t{trace}\n")
    except Exception:
        pass


# =============================================================================
# CONFIGURATION
# =============================================================================
EXPOSED = ["scale", "status", "contexts", "restart"]  # CLI + MCP

CONFIG = {
    "version": "1.0.0",
    "discovery_url": "http://127.0.0.1:8080/json",
    "context_title": "SharedJSContext",
    "response_timeout_seconds": 10.0,
    "custom_class": "lovely-custom-toasts",
    "restart_expression": "SteamClient.Browser.RestartJSContext();",
    # Webpack chunk signature '2dcc5aaf7' (as of 2025-10-18)
    "js_chunk": "steamui/chunk~2dcc5aaf7.js",
    "css_chunk": "steamui/css/chunk~2dcc5aaf7.css",
}

_SCALE_RE = re.compile(r"^(?:0|[1-9][0-9]*)(?:\.[0-9]+)?$")

# Written for chunk '2dcc5aaf7' only. Minified names move between client
# builds, so a miss here means an unknown revision and nothing is written.
_JS_ANCHORS = {
    "width": re.compile(
        r"(V=(?:0|[1-9][0-9]*),H=(?:0|[1-9][0-9]*),j=(?:0|[1-9][0-9]*),q=)"
        r"(0|[1-9][0-9]*)"
        r"(;var Q;function)"
    ),
    "heights": re.compile(
        r"(;const Oe=)(0|[1-9][0-9]*)(,Ge=)(0|[1-9][0-9]*)(;function Pe)"
    ),
    "dom_class": re.compile(
        r"(\",DesktopToastContainer:\")([A-Za-z0-9_\s\-]+)(\",BackgroundAnimation:\")"
    ),
}
_CSS_ANCHOR = re.compile(
    r"(\nhtml,body\{.+\s*\n)(/\* Custom \*/ .+\n)?(/\*# sourceMappingURL=.+)"
)


@dataclass(frozen=True)
class ToastValues:
    """Toast layout values as they appear in the JavaScript chunk."""

    width: int
    height1: int  # achievement and general toasts
    height2: int  # the "Press Shift+Tab to begin" toast
    dom_class: str  # DesktopToastContainer class token(s)


ORIGINAL_VALUES = ToastValues(
    width=283, height1=70, height2=90, dom_class="zXrpABNQHpWKgSzqnGlL"
)


@dataclass(frozen=True)
class BackupRecord:
    original: Path
    backup: Path
    timestamp: str


@dataclass(frozen=True)
class Context:
    """One debuggable target from the CDP discovery endpoint."""

    title: str
    debug_url: str
    id: str = ""
    type: str = ""
    url: str = ""


# =============================================================================
# ERRORS
# =============================================================================


class ToastsError(Exception):
    """Base for every failure this tool reports."""


class PatchError(ToastsError):
    def __init__(self, message: str, path: Path):
        super().__init__(message)
        self.path = path


class AnchorNotFoundError(PatchError):
    """An anchor did not match. The file was not written."""

    def __init__(self, path: Path, anchors: list[str]):
        super().__init__(
            f"No anchor found for {', '.join(anchors)} in '{path}'. "
            "Unknown chunk revision? File left untouched.",
            path,
        )
        self.anchors = anchors


class VerificationError(PatchError):
    """The file was written but re-reading it did not give the expected values."""

    def __init__(self, path: Path, expected: Any, actual: Any):
        super().__init__(
            f"Verification failed for '{path}' (file was already written): "
            f"expected {expected!r}, found {actual!r}",
            path,
        )
        self.expected = expected
        self.actual = actual


class DiscoveryError(ToastsError):
    pass


class ContextNotFoundError(ToastsError):
    pass


class CommandError(ToastsError):
    def __init__(self, message: str, command_id: int):
        super().__init__(f"{message} (CID {command_id})")
        self.command_id = command_id


class TransportError(CommandError):
    pass


class MalformedResponseError(TransportError):
    pass


class CommandTimeoutError(CommandError, TimeoutError):
    pass


class RemoteExecutionError(CommandError):
    def __init__(self, message: str, command_id: int, details: Any = None):
        super().__init__(message, command_id)
        self.details = details


class NoResponseError(CommandError):
    pass


# =============================================================================
# CORE — Files & Backups
# =============================================================================


def _now_stamp() -> str:
    """UTC timestamp that sorts and is safe in file names."""
    return datetime.now(timezone.utc).strftime("%Y-%m-%d_%H-%M-%S-%fZ")


def _read_text(path: Path) -> str:
    try:
        # newline="" keeps CRLF bytes outside the patched spans intact
        with open(path, "r", encoding="utf-8", newline="") as f:
            text = f.read()
    except OSError as e:
        _log("ERROR", "read", str(path), detail=str(e))
        raise
    if not text:
        raise OSError(f"Empty file data: '{path}'")
    return text


def _write_text(path: Path, text: str):
    try:
        with open(path, "w", encoding="utf-8", newline="") as f:
            f.write(text)
    except OSError as e:
        _log("ERROR", "write", str(path), detail=str(e))
        raise


def backup_file(path: Path) -> BackupRecord:
    """Copy a file to '<name>.<timestamp>.backup' next to it. Raises OSError."""
    path = Path(path)
    stamp = _now_stamp()
    backup_path = path.with_name(f"{path.name}.{stamp}.backup")
    try:
        shutil.copyfile(path, backup_path)
    except OSError as e:
        _log("ERROR", "backup", str(path), detail=str(e))
        raise
    _log("INFO", "backup", str(path), detail=str(backup_path))
    return BackupRecord(original=path, backup=backup_path, timestamp=stamp)


# =============================================================================
# CORE — Patch Engine
# =============================================================================


def _round_half_up(value: int, scale: float) -> int:
    return int((Decimal(value) * Decimal(str(scale))).quantize(0, ROUND_HALF_UP))


def _format_scale(scale: float) -> str:
    """Shortest decimal form: 2 -> '2', 1.5 -> '1.5'."""
    text = repr(float(scale))
    return text[:-2] if text.endswith(".0") else text


def required_values(
    scale: float, original: ToastValues = ORIGINAL_VALUES
) -> ToastValues:
    """Values the JavaScript chunk must hold for a scale factor.

    Dimensions are rounded half-up. The custom class is appended to the
    container token for any scale other than 1, and dropped for 1 (reset).
    """
    dom_class = original.dom_class
    if scale != 1:
        dom_class = f"{dom_class} {CONFIG['custom_class']}"
    return ToastValues(
        width=_round_half_up(original.width, scale),
        height1=_round_half_up(original.height1, scale),
        height2=_round_half_up(original.height2, scale),
        dom_class=dom_class,
    )


def scale_rule(scale: float, original: ToastValues = ORIGINAL_VALUES) -> str:
    """CSS line for a scale factor, or '' when resetting."""
    if scale == 1:
        return ""
    return (
        f"/* Custom */ .{original.dom_class}.{CONFIG['custom_class']} "
        f"{{ transform: scale({_format_scale(scale)}); transform-origin: top left; }}\n"
    )


def _match_js_anchors(text: str) -> dict[str, re.Match | None]:
    return {name: pattern.search(text) for name, pattern in _JS_ANCHORS.items()}


def _extract_js_values(text: str) -> ToastValues | None:
    matches = _match_js_anchors(text)
    if not all(matches.values()):
        return None
    heights = matches["heights"]
    return ToastValues(
        width=int(matches["width"].group(2)),
        height1=int(heights.group(2)),
        height2=int(heights.group(4)),
        dom_class=matches["dom_class"].group(2),
    )


def read_script_values(path: Path) -> ToastValues:
    """Values currently in the JavaScript chunk. Raises AnchorNotFoundError."""
    path = Path(path)
    text = _read_text(path)
    missing = [name for name, m in _match_js_anchors(text).items() if m is None]
    if missing:
        raise AnchorNotFoundError(path, missing)
    return _extract_js_values(text)


def read_stylesheet_rule(path: Path) -> str:
    """Custom line currently in the CSS chunk ('' if none)."""
    path = Path(path)
    match = _CSS_ANCHOR.search(_read_text(path))
    if match is None:
        raise AnchorNotFoundError(path, ["stylesheet"])
    return match.group(2) or ""


def patch_script(
    path: Path, scale: float, original: ToastValues = ORIGINAL_VALUES
) -> ToastValues:
    """Rewrite toast width, heights and container class in the JavaScript chunk.

    Every anchor must match before anything is written. After writing, the
    file is read back and must hold exactly the required values, otherwise
    VerificationError is raised and the written file is left as is.
    """
    path = Path(path)
    _log("INFO", "patch_js", str(path), detail=f"scale={scale}")
    required = required_values(scale, original)
    text = _read_text(path)

    missing = [name for name, m in _match_js_anchors(text).items() if m is None]
    if missing:
        _log("ERROR", "patch_js", str(path), detail=f"missing anchors: {missing}")
        raise AnchorNotFoundError(path, missing)

    text = _JS_ANCHORS["width"].sub(
        lambda m: f"{m.group(1)}{required.width}{m.group(3)}", text, count=1
    )
    text = _JS_ANCHORS["heights"].sub(
        lambda m: (
            f"{m.group(1)}{required.height1}{m.group(3)}"
            f"{required.height2}{m.group(5)}"
        ),
        text,
        count=1,
    )
    text = _JS_ANCHORS["dom_class"].sub(
        lambda m: f"{m.group(1)}{required.dom_class}{m.group(3)}", text, count=1
    )
    _write_text(path, text)
    _log("WARN", "patch_js", f"wrote changes to {path}")

    actual = _extract_js_values(_read_text(path))
    if actual != required:
        _log(
            "ERROR",
            "verify_js",
            str(path),
            detail=f"expected={asdict(required)} actual={asdict(actual) if actual else None}",
        )
        raise VerificationError(
            path, asdict(required), asdict(actual) if actual else None
        )

    _log("INFO", "verify_js", str(path), detail=json.dumps(asdict(actual)))
    return actual


def patch_stylesheet(
    path: Path, scale: float, original: ToastValues = ORIGINAL_VALUES
) -> str:
    """Insert, replace or remove the toast scale rule in the CSS chunk.

    The rule sits between the 'html,body{...}' line and the sourceMappingURL
    comment. Returns the rule now in the file ('' after a reset).
    """
    path = Path(path)
    _log("INFO", "patch_css", str(path), detail=f"scale={scale}")
    rule = scale_rule(scale, original)
    text = _read_text(path)

    if _CSS_ANCHOR.search(text) is None:
        _log("ERROR", "patch_css", str(path), detail="missing anchor: stylesheet")
        raise AnchorNotFoundError(path, ["stylesheet"])

    text = _CSS_ANCHOR.sub(lambda m: f"{m.group(1)}{rule}{m.group(3)}", text, count=1)
    _write_text(path, text)
    _log("WARN", "patch_css", f"wrote changes to {path}")

    match = _CSS_ANCHOR.search(_read_text(path))
    actual = (match.group(2) or "") if match else None
    if actual != rule:
        _log("ERROR", "verify_css", str(path), detail=f"expected={rule!r} actual={actual!r}")
        raise VerificationError(path, rule, actual)

    _log("INFO", "verify_css", str(path), detail=rule.strip() or "reset")
    return actual


# =============================================================================
# CORE — CDP Discovery & Command Channel
# =============================================================================


class CommandIds:
    """Process-wide monotonic correlation ids, safe under parallel dispatch."""

    def __init__(self, start: int = 0):
        self._counter = itertools.count(start)
        self._lock = threading.Lock()

    def next(self) -> int:
        with self._lock:
            return next(self._counter)


_COMMAND_IDS = CommandIds()


class _CommandOutcome:
    """Write-once result cell for one command. First commit wins."""

    def __init__(self, command_id: int):
        self.command_id = command_id
        self.done = False
        self.result: Any = None
        self.error: CommandError | None = None

    def succeed(self, result: Any) -> bool:
        if self.done:
            return False
        self.done, self.result = True, result
        return True

    def fail(self, error: CommandError) -> bool:
        if self.done:
            return False
        self.done, self.error = True, error
        return True

    def resolve(self) -> Any:
        if self.error is not None:
            raise self.error
        if not self.done:
            raise NoResponseError(
                "Missing response on WebSocket disconnection", self.command_id
            )
        return self.result


async def discover(
    url: str | None = None, *, transport: httpx.AsyncBaseTransport | None = None
) -> list[Context]:
    """List debuggable contexts from the CDP /json endpoint. Raises DiscoveryError."""
    url = url or CONFIG["discovery_url"]
    try:
        async with httpx.AsyncClient(transport=transport, timeout=5.0) as client:
            response = await client.get(url)
            response.raise_for_status()
            data = response.json()
    except (httpx.HTTPError, httpx.InvalidURL) as e:
        _log("ERROR", "discover", url, detail=str(e))
        raise DiscoveryError(f"Failed to get Steam client data from {url}: {e}") from e
    except ValueError as e:
        _log("ERROR", "discover", url, detail="non-JSON body")
        raise DiscoveryError(f"Steam client data from {url} is not JSON: {e}") from e

    if not isinstance(data, list) or not data:
        raise DiscoveryError(f"Failed to get Steam client data from {url}. Empty response.")

    contexts = [
        Context(
            title=str(item.get("title") or ""),
            debug_url=str(item.get("webSocketDebuggerUrl") or ""),
            id=str(item.get("id") or ""),
            type=str(item.get("type") or ""),
            url=str(item.get("url") or ""),
        )
        for item in data
        if isinstance(item, dict)
    ]
    _log("DEBUG", "discover", url, metrics=f"contexts={len(contexts)}")
    return contexts


async def resolve_debug_url(
    url: str | None = None,
    *,
    title: str | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> str:
    """Debugger WebSocket URL of the context with the expected title."""
    title = title or CONFIG["context_title"]
    for context in await discover(url, transport=transport):
        if context.title == title:
            if not context.debug_url:
                raise ContextNotFoundError(
                    f'Could not send a command. No "{title}" debug WebSocket URL is available.'
                )
            return context.debug_url
    raise ContextNotFoundError(f'Could not send a command. No "{title}" is available.')


def _handle_message(raw: str | bytes, outcome: _CommandOutcome) -> bool:
    """Apply one inbound message. Returns True once the outcome is committed."""
    cid = outcome.command_id
    try:
        message = json.loads(raw)
    except ValueError:
        return outcome.fail(MalformedResponseError("Malformed response body", cid))

    if not isinstance(message, dict) or message.get("id") != cid:
        _log("WARN", "ws_ignored", f"ignored message for CID {cid}", detail=str(raw)[:500])
        return False

    result = message.get("result")
    exception_details = message.get("exceptionDetails")
    if exception_details is None and isinstance(result, dict):
        exception_details = result.get("exceptionDetails")

    if exception_details is not None:
        return outcome.fail(
            RemoteExecutionError(
                f"Steam client exception in response: {json.dumps(exception_details)}",
                cid,
                exception_details,
            )
        )
    if "error" in message:
        return outcome.fail(
            RemoteExecutionError(
                f"CDP error in response: {json.dumps(message['error'])}",
                cid,
                message["error"],
            )
        )
    if not isinstance(result, dict) or "result" not in result:
        return outcome.fail(
            MalformedResponseError(f"Missing result in response: {json.dumps(message)}", cid)
        )
    return outcome.succeed(result["result"])


async def dispatch(
    debug_url: str,
    method: str,
    expression: str,
    params: dict[str, Any] | None = None,
    *,
    timeout: float | None = None,
    ids: CommandIds | None = None,
) -> Any:
    """Send one command envelope over a fresh WebSocket and await its response.

    Messages for other ids are ignored. The first of matching response,
    deadline or transport failure decides the outcome.
    """
    timeout = CONFIG["response_timeout_seconds"] if timeout is None else timeout
    cid = (ids or _COMMAND_IDS).next()
    outcome = _CommandOutcome(cid)
    envelope = {
        "id": cid,
        "method": method,
        "params": {
            "expression": expression,
            "userGesture": True,
            "awaitPromise": True,
            **(params or {}),
        },
    }
    start_ms = time.time() * 1000

    try:
        async with connect(debug_url, max_size=None) as ws:
            await ws.send(json.dumps(envelope))
            _log("DEBUG", "ws_send", f"CID {cid} {method}", detail=expression[:200])
            try:
                async with asyncio.timeout(timeout):
                    async for raw in ws:
                        if _handle_message(raw, outcome):
                            break
            except TimeoutError:
                outcome.fail(
                    CommandTimeoutError(f"Response timed out in {timeout}s", cid)
                )
    except (OSError, WebSocketException) as e:
        outcome.fail(TransportError(f"WebSocket error on {debug_url}: {e}", cid))

    latency_ms = round(time.time() * 1000 - start_ms, 2)
    status = "error" if outcome.error or not outcome.done else "success"
    _log(
        "ERROR" if status == "error" else "INFO",
        "ws_command",
        f"CID {cid} {method}",
        detail=str(outcome.error or ""),
        metrics=f"latency_ms={latency_ms} status={status}",
    )
    return outcome.resolve()


async def send_command(
    method: str,
    expression: str,
    params: dict[str, Any] | None = None,
    *,
    discovery_url: str | None = None,
    timeout: float | None = None,
    ids: CommandIds | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> Any:
    """Resolve the SharedJSContext and run one command against it."""
    if not method:
        raise ValueError("No command method is provided to send.")
    if not expression:
        raise ValueError("No command expression is provided to send.")
    # The debugger URL changes across client restarts, so look it up each time.
    debug_url = await resolve_debug_url(discovery_url, transport=transport)
    return await dispatch(debug_url, method, expression, params, timeout=timeout, ids=ids)


async def evaluate(expression: str, **kwargs) -> Any:
    """Runtime.evaluate an expression in the SharedJSContext."""
    return await send_command("Runtime.evaluate", expression, **kwargs)


async def restart_js_context(**kwargs) -> Any:
    return await evaluate(CONFIG["restart_expression"], **kwargs)


# =============================================================================
# ORCHESTRATION
# =============================================================================


def _parse_scale(value: str | float | None) -> float:
    """Validate a scale argument. Empty means 1 (reset)."""
    if value is None or value == "":
        return 1.0
    if isinstance(value, str):
        if not _SCALE_RE.match(value):
            raise ValueError(f"Invalid scale value (expected an integer/float): '{value}'.")
        value = float(value)
    if not math.isfinite(value):
        raise ValueError(f"Invalid scale factor (not a finite number): {value!r}.")
    if value < 1:
        raise ValueError("Invalid scale factor. The factor must be equal or higher than 1.")
    return float(value)


def _chunk_paths(steam_dir: str | Path) -> tuple[Path, Path]:
    root = Path(steam_dir).expanduser()
    if not root.is_dir():
        raise ValueError(f"Invalid Steam directory path: '{steam_dir}'.")
    root = root.resolve()
    return root / CONFIG["js_chunk"], root / CONFIG["css_chunk"]


async def _scale_impl(
    steam_dir: str,
    scale: str | float | None = None,
    restart: bool = False,
    discovery_url: str | None = None,
    timeout: float | None = None,
) -> tuple[bool, dict, str]:
    """Backup and patch both chunks, then optionally restart the JS context.

    Returns (success, summary, error). Patches are not rolled back when the
    restart fails.
    """
    start_ms = time.time() * 1000
    summary: dict[str, Any] = {"backups": []}
    try:
        factor = _parse_scale(scale)
        js_path, css_path = _chunk_paths(steam_dir)
        summary["scale"] = factor

        summary["backups"].append(str(backup_file(js_path).backup))
        summary["values"] = asdict(patch_script(js_path, factor))

        summary["backups"].append(str(backup_file(css_path).backup))
        summary["rule"] = patch_stylesheet(css_path, factor).strip()

        if restart:
            _log("INFO", "restart", "restarting Steam desktop client")
            await restart_js_context(discovery_url=discovery_url, timeout=timeout)
        summary["restarted"] = restart

        latency_ms = round(time.time() * 1000 - start_ms, 2)
        _log(
            "INFO",
            "scale",
            str(steam_dir),
            metrics=f"latency_ms={latency_ms} status=success scale={factor}",
        )
        return True, summary, ""
    except (ToastsError, OSError, ValueError) as e:
        latency_ms = round(time.time() * 1000 - start_ms, 2)
        _log(
            "ERROR",
            "scale",
            str(steam_dir),
            detail=f"{type(e).__name__}: {e}",
            metrics=f"latency_ms={latency_ms} status=error",
        )
        return False, summary, f"{type(e).__name__}: {e}"


def _status_impl(steam_dir: str) -> tuple[bool, dict, str]:
    """Read current toast values without writing anything."""
    try:
        js_path, css_path = _chunk_paths(steam_dir)
        values = read_script_values(js_path)
        rule = read_stylesheet_rule(css_path)
    except (ToastsError, OSError, ValueError) as e:
        _log("ERROR", "status", str(steam_dir), detail=str(e))
        return False, {}, f"{type(e).__name__}: {e}"
    custom = CONFIG["custom_class"]
    return (
        True,
        {
            "values": asdict(values),
            "custom_class": custom in values.dom_class.split(),
            "rule": rule.strip(),
            "scale": round(values.width / ORIGINAL_VALUES.width, 2),
        },
        "",
    )


async def _contexts_impl(discovery_url: str | None = None) -> tuple[bool, list, str]:
    try:
        contexts = await discover(discovery_url)
    except DiscoveryError as e:
        return False, [], str(e)
    return True, [asdict(c) for c in contexts], ""


async def _restart_impl(
    discovery_url: str | None = None, timeout: float | None = None
) -> tuple[bool, Any, str]:
    try:
        result = await restart_js_context(discovery_url=discovery_url, timeout=timeout)
    except ToastsError as e:
        _log("ERROR", "restart", str(e))
        return False, None, f"{type(e).__name__}: {e}"
    return True, result, ""


def toasts_scale(
    steam_dir: str,
    scale: str | float | None = None,
    restart: bool = False,
    discovery_url: str | None = None,
    timeout: float | None = None,
) -> tuple[bool, dict, str]:
    return asyncio.run(_scale_impl(steam_dir, scale, restart, discovery_url, timeout))


def toasts_status(steam_dir: str) -> tuple[bool, dict, str]:
    return _status_impl(steam_dir)


def toasts_contexts(discovery_url: str | None = None) -> tuple[bool, list, str]:
    return asyncio.run(_contexts_impl(discovery_url))


def toasts_restart(
    discovery_url: str | None = None, timeout: float | None = None
) -> tuple[bool, Any, str]:
    return asyncio.run(_restart_impl(discovery_url, timeout))


# =============================================================================
# CLI
# =============================================================================


def _report(msg: str):
    """Print action report to stderr (keeps stdout clean for pipes)."""
    print(msg, file=sys.stderr)


def _format_summary(summary: dict) -> str:
    lines = [f"Set notification toast values (x{_format_scale(summary['scale'])}):"]
    for key, value in summary["values"].items():
        lines.append(f"     {key}: {value}")
    lines.append(f"     rule: {summary['rule'] or '(CSS reset)'}")
    for backup in summary["backups"]:
        lines.append(f"     Backup: {backup}")
    return "\n".join(lines)


def main():
    _log("INFO", "start", f"Command: {sys.argv[1] if len(sys.argv) > 1 else '--help'}")
    parser = argparse.ArgumentParser(
        description="Rescale Steam desktop notification toasts",
        epilog="Steam must run with -cef-enable-debugging for contexts/restart.",
    )
    # -V (capital) for version: lowercase -v reserved for future --verbose flag alignment
    parser.add_argument("-V", "--version", action="version", version=CONFIG["version"])
    subparsers = parser.add_subparsers(dest="command", help="Commands")

    subparsers.add_parser("mcp-stdio", help="Run as MCP server")

    p_scale = subparsers.add_parser("scale", help="Patch toast size (scale 1 resets)")
    p_scale.add_argument("steam_dir", help="Steam installation directory")
    p_scale.add_argument("scale", nargs="?", default="", help="Scale factor >= 1 (default 1)")
    p_scale.add_argument(
        "-r", "--restart", action="store_true", help="Restart SharedJSContext after patching"
    )

    p_status = subparsers.add_parser("status", help="Show current toast values")
    p_status.add_argument("steam_dir")

    p_contexts = subparsers.add_parser("contexts", help="List CDP debug contexts")
    p_restart = subparsers.add_parser("restart", help="Restart SharedJSContext only")

    for p in (p_scale, p_contexts, p_restart):
        p.add_argument("-u", "--url", default=None, help="CDP discovery URL")
    for p in (p_scale, p_restart):
        p.add_argument(
            "-T", "--timeout", type=float, default=None, help="Response timeout (seconds)"
        )

    args = parser.parse_args()

    try:
        if args.command == "mcp-stdio":
            _run_mcp()
            return

        exit_code = 0
        if args.command == "scale":
            success, summary, err = toasts_scale(
                args.steam_dir, args.scale, args.restart, args.url, args.timeout
            )
            if success:
                print(_format_summary(summary))
                if not args.restart:
                    _report("Skipped restarting Steam desktop client (option --restart).")
            else:
                for backup in summary.get("backups", []):
                    _report(f"Backup: {backup}")
                _report(f"Error: {err}")
                exit_code = 1

        elif args.command == "status":
            success, status, err = toasts_status(args.steam_dir)
            if success:
                print(json.dumps(status, indent=2))
            else:
                _report(f"Error: {err}")
                exit_code = 1

        elif args.command == "contexts":
            success, contexts, err = toasts_contexts(args.url)
            if success:
                for c in contexts:
                    print(f"{c['title'] or '(untitled)'}\t{c['type']}\t{c['debug_url']}")
            else:
                _report(f"Error: {err}")
                exit_code = 1

        elif args.command == "restart":
            success, _, err = toasts_restart(args.url, args.timeout)
            if success:
                _report("Restarted Steam desktop client JS context.")
            else:
                _report(f"Error: {err}")
                exit_code = 1

        else:
            parser.print_help()

        sys.exit(exit_code)
    except (AssertionError, Exception) as e:
        _log("ERROR", args.command or "unknown", str(e))
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)


# =============================================================================
# FASTMCP SERVER
# =============================================================================


def _build_mcp():
    from fastmcp import FastMCP

    mcp = FastMCP("steam-toasts")

    @mcp.tool()
    async def scale(
        steam_dir: str,
        factor: float = 1.0,
        restart: bool = False,
        url: str | None = None,
    ) -> str:
        """Resize Steam notification toasts. Factor 1 resets to stock size.

        Backs up both steamui chunks before writing and verifies the result.

        Args:
            steam_dir: Steam installation directory
            factor: Scale factor, must be >= 1 (default 1 = reset)
            restart: Restart the SharedJSContext so the change shows
            url: CDP discovery URL (default http://127.0.0.1:8080/json)
        """
        success, summary, err = await _scale_impl(steam_dir, factor, restart, url)
        if not success:
            raise ValueError(err)
        return json.dumps(summary)

    @mcp.tool()
    def status(steam_dir: str) -> str:
        """Current toast values in the steamui chunks (read only).

        Args:
            steam_dir: Steam installation directory
        """
        success, result, err = _status_impl(steam_dir)
        if not success:
            raise ValueError(err)
        return json.dumps(result)

    @mcp.tool()
    async def contexts(url: str | None = None) -> str:
        """List Steam client CDP debug contexts.

        Args:
            url: CDP discovery URL
        """
        success, result, err = await _contexts_impl(url)
        if not success:
            raise ValueError(err)
        return json.dumps(result)

    @mcp.tool()
    async def restart(url: str | None = None) -> str:
        """Restart the Steam client SharedJSContext.

        Args:
            url: CDP discovery URL
        """
        success, _, err = await _restart_impl(url)
        if not success:
            raise ValueError(err)
        return "Restarted SharedJSContext"

    return mcp


def _run_mcp():
    mcp = _build_mcp()
    print("steam-toasts MCP server starting...", file=sys.stderr)
    mcp.run(transport="stdio")


if __name__ == "__main__":
    main()
