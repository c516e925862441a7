"""DisplayStateStore: single source of truth for devices and presets.

Every mutating action follows read-after-write: the canonical device list
(and, for preset mutations, the canonical preset collection first) is
re-fetched from its collaborator before the action completes. Local state
is never trusted as final, with one exception: the speculative origin
written by a drag, which the next successful ``list()`` overwrites.

INVARIANT: every public action returns a :class:`ServiceResult`; domain
errors never escape. ``loading`` is True only while an action runs.
``error`` is set when a collaborator (display tool or preset file) fails
and stays set until :meth:`DisplayStateStore.clear_error`. Local
rejections (last display, shortcut format, shortcut taken) leave it alone.
"""

from __future__ import annotations

import logging
from collections.abc import Generator
from contextlib import contextmanager
from dataclasses import asdict
from typing import TYPE_CHECKING, Any

import structlog
from pydantic import ValidationError

from dpui.config.models import CanvasConfig
from dpui.domain.canvas import Bounds, CanvasTransform, DragGesture
from dpui.domain.codec import DEFAULT_PROGRAM, encode, encode_toggle
from dpui.domain.display import DeviceSet, Display
from dpui.domain.errors import (
    ActionPendingError,
    DpuiError,
    ErrorKind,
    PresetNotFoundError,
    PresetStoreError,
    ShortcutUnavailableError,
    ToolError,
)
from dpui.domain.presets import Preset, PresetCollection
from dpui.domain.shortcuts import parse_shortcut
from dpui.services._helpers import new_preset_id, now_iso
from dpui.services.base import BaseService
from dpui.services.contracts import (
    DisplayListData,
    PresetListData,
    ToggleData,
    display_item,
    dump_validated,
    preset_item,
)
from dpui.services.hotkeys import HotkeyRegistry
from dpui.services.result import ServiceError, ServiceResult
from dpui.services.telemetry import trace_span, traced
from dpui.services.toggle import DEFAULT_COUNTDOWN_SECONDS, ToggleOutcome, ToggleSafetyController

if TYPE_CHECKING:
    from dpui.infrastructure.displayplacer import ExternalDisplayService
    from dpui.infrastructure.preset_store import PresetRepository
    from dpui.infrastructure.timers import Scheduler
    from dpui.plugins.event_bus import EventBus

logger = logging.getLogger(__name__)
log = structlog.get_logger(__name__)

_PRESETS_KEY = "presets"
_DEVICES_KEY = "devices"


class DisplayStateStore(BaseService):
    """Orchestrates the display tool, presets, toggles and hotkeys.

    Parameters:
        display_service: Lists and applies display configurations.
        preset_repository: Loads and saves the preset collection.
        scheduler: Drives the toggle countdown timers.
        hotkeys: Registry to keep in sync with preset hotkeys.
        event_bus: Receives UI events (display/preset lists, countdown, errors).
        countdown_seconds: Length of a disable confirmation.
        canvas: Layout-editor geometry.
        program: Program name written at the head of encoded configurations.
    """

    def __init__(
        self,
        display_service: ExternalDisplayService,
        preset_repository: PresetRepository,
        *,
        scheduler: Scheduler,
        hotkeys: HotkeyRegistry | None = None,
        event_bus: EventBus | None = None,
        countdown_seconds: int = DEFAULT_COUNTDOWN_SECONDS,
        canvas: CanvasConfig | None = None,
        program: str = DEFAULT_PROGRAM,
    ) -> None:
        super().__init__(event_bus)
        self._display_service = display_service
        self._preset_repository = preset_repository
        self._canvas = canvas or CanvasConfig()
        self._program = program

        self._devices = DeviceSet()
        self._presets = PresetCollection()
        self._selected_preset_id: str | None = None
        self._error: ServiceError | None = None
        self._depth = 0
        self._pending_keys: set[str] = set()
        self._drag: DragGesture | None = None

        self.toggles = ToggleSafetyController(
            scheduler,
            countdown_seconds=countdown_seconds,
            on_change=self._on_toggle_change,
        )
        self.hotkeys = hotkeys if hotkeys is not None else HotkeyRegistry()
        self.hotkeys.on_activate = self._on_hotkey_activate

    # ------------------------------------------------------------------
    # State (read-only for callers)
    # ------------------------------------------------------------------

    @property
    def device_set(self) -> DeviceSet:
        return self._devices

    @property
    def displays(self) -> tuple[Display, ...]:
        return self._devices.displays

    @property
    def presets(self) -> PresetCollection:
        return self._presets

    @property
    def selected_preset(self) -> Preset | None:
        if self._selected_preset_id is None:
            return None
        return self._presets.get(self._selected_preset_id)

    @property
    def loading(self) -> bool:
        return self._depth > 0

    @property
    def error(self) -> ServiceError | None:
        return self._error

    def clear_error(self) -> None:
        """Errors never self-clear; the UI calls this after showing one."""
        self._error = None

    @property
    def drag(self) -> DragGesture | None:
        return self._drag

    def toggle_remaining(self, display_id: str) -> int | None:
        """Seconds left on the display's disable confirmation, None when idle."""
        return self.toggles.remaining(display_id)

    def canvas_transform(self) -> CanvasTransform:
        """Transform fitted to the current (possibly dragged) device set."""
        cfg = self._canvas
        return CanvasTransform.fit(
            self._devices.displays,
            max_width=cfg.max_width_px,
            max_height=cfg.max_height_px,
            scale_cap=cfg.scale_cap,
            margin=cfg.margin_px,
            default_bounds=Bounds(0, 0, cfg.default_width, cfg.default_height),
        )

    # ------------------------------------------------------------------
    # Fetching
    # ------------------------------------------------------------------

    @traced
    def fetch_displays(self) -> ServiceResult:
        """Replace the device set with the tool's current arrangement."""
        op = "fetch_displays"
        warnings: list[str] = []
        try:
            with self._action(_DEVICES_KEY):
                data = self._refresh_devices(warnings)
        except DpuiError as exc:
            return self._fail(op, exc, warnings)
        return ServiceResult(ok=True, op=op, data=data, warnings=warnings)

    @traced
    def fetch_presets(self) -> ServiceResult:
        """Reload presets from storage and re-sync hotkey bindings."""
        op = "fetch_presets"
        warnings: list[str] = []
        try:
            with self._action(_PRESETS_KEY):
                data = self._refresh_presets(warnings)
        except DpuiError as exc:
            return self._fail(op, exc, warnings)
        return ServiceResult(ok=True, op=op, data=data, warnings=warnings)

    @traced
    def load(self) -> ServiceResult:
        """Initial load: presets (and their hotkeys), then displays."""
        op = "load"
        warnings: list[str] = []
        try:
            with self._action(_PRESETS_KEY, _DEVICES_KEY):
                presets = self._refresh_presets(warnings)
                displays = self._refresh_devices(warnings)
        except DpuiError as exc:
            return self._fail(op, exc, warnings)
        return ServiceResult(
            ok=True,
            op=op,
            data={"displays": displays, "presets": presets},
            warnings=warnings,
        )

    # ------------------------------------------------------------------
    # Applying configurations
    # ------------------------------------------------------------------

    @traced
    def apply_config(self, config: str) -> ServiceResult:
        """Run *config* through the display tool, then re-fetch displays."""
        op = "apply_config"
        warnings: list[str] = []
        try:
            with self._action(_DEVICES_KEY):
                self._display_service.apply(config)
                data = self._refresh_devices(warnings)
        except DpuiError as exc:
            return self._fail(op, exc, warnings)
        log.info("config.applied", config=config)
        return ServiceResult(ok=True, op=op, data={**data, "config": config}, warnings=warnings)

    @traced
    def apply_layout(self) -> ServiceResult:
        """Apply the current device set, including dragged positions."""
        op = "apply_layout"
        try:
            config = self._encode_current()
        except DpuiError as exc:
            return self._fail(op, exc, [])
        return self.apply_config(config).model_copy(update={"op": op})

    @traced
    def apply_preset(self, preset_id: str) -> ServiceResult:
        """Select *preset_id* and replay its stored configuration."""
        op = "apply_preset"
        preset = self._presets.get(preset_id)
        if preset is None:
            return self._fail(op, PresetNotFoundError(f"No preset with id {preset_id}"), [])
        self._selected_preset_id = preset.id
        result = self.apply_config(preset.config)
        data = {**result.data, "preset": preset_item(preset)} if result.ok else result.data
        return result.model_copy(update={"op": op, "data": data})

    # ------------------------------------------------------------------
    # Enable / disable with confirmation
    # ------------------------------------------------------------------

    @traced
    def request_toggle(self, display_id: str, enabled: bool) -> ServiceResult:
        """Ask to turn a display on (applied now) or off (starts a confirmation)."""
        op = "request_toggle"
        warnings: list[str] = []
        try:
            display = self._require_display(display_id)
            if enabled:
                self.toggles.request_enable(display_id)
                if self.toggles.is_pending(display_id):
                    self.toggles.cancel(display_id)
                with self._action(f"display:{display_id}", _DEVICES_KEY):
                    self._display_service.apply(
                        encode_toggle(display_id, True, program=self._program)
                    )
                    self._refresh_devices(warnings)
                data = self._toggle_data(display_id, ToggleOutcome.APPLY_ENABLE, enabled=True)
            elif not display.enabled:
                data = self._toggle_data(display_id, "unchanged", enabled=False)
            else:
                session = self.toggles.request_disable(display_id, self._devices.enabled_count)
                data = self._toggle_data(
                    display_id, ToggleOutcome.PENDING, remaining=session.remaining_seconds
                )
        except DpuiError as exc:
            return self._fail(op, exc, warnings)
        return ServiceResult(ok=True, op=op, data=data, warnings=warnings)

    @traced
    def confirm_toggle(self, display_id: str) -> ServiceResult:
        """Confirm a pending disable: exactly one disable is applied."""
        op = "confirm_toggle"
        warnings: list[str] = []
        try:
            with self._action(f"display:{display_id}", _DEVICES_KEY):
                self.toggles.confirm(display_id, self._devices.enabled_count)
                self._display_service.apply(encode_toggle(display_id, False, program=self._program))
                self._refresh_devices(warnings)
        except DpuiError as exc:
            return self._fail(op, exc, warnings)
        log.info("display.disabled", display_id=display_id)
        return ServiceResult(
            ok=True,
            op=op,
            data=self._toggle_data(display_id, ToggleOutcome.APPLY_DISABLE, enabled=False),
            warnings=warnings,
        )

    @traced
    def cancel_toggle(self, display_id: str) -> ServiceResult:
        """Abandon a pending disable; nothing is applied."""
        op = "cancel_toggle"
        try:
            self.toggles.cancel(display_id)
        except DpuiError as exc:
            return self._fail(op, exc, [])
        return ServiceResult(
            ok=True,
            op=op,
            data=self._toggle_data(display_id, ToggleOutcome.CANCELLED),
        )

    # ------------------------------------------------------------------
    # Presets
    # ------------------------------------------------------------------

    @traced
    def add_preset(self, name: str, config: str, *, hotkey: str | None = None) -> ServiceResult:
        """Persist a new preset with a fresh id and ``createdAt``."""
        op = "add_preset"
        warnings: list[str] = []
        try:
            normalized = self._check_hotkey(hotkey, preset_id=None) if hotkey else None
            with self._action(_PRESETS_KEY):
                preset = _build_preset(
                    id=new_preset_id(),
                    name=name,
                    config=config,
                    hotkey=normalized,
                    created_at=now_iso(),
                )
                collection = self._preset_repository.load_presets()
                self._preset_repository.save_presets(collection.with_preset(preset))
                self._resync_after_preset_write(warnings)
        except DpuiError as exc:
            return self._fail(op, exc, warnings)
        log.info("preset.added", preset_id=preset.id, name=preset.name)
        return ServiceResult(ok=True, op=op, data=preset_item(preset), warnings=warnings)

    @traced
    def save_current_layout(self, name: str, *, hotkey: str | None = None) -> ServiceResult:
        """Encode the current device set (dragged positions included) as a preset."""
        op = "save_current_layout"
        try:
            config = self._encode_current()
        except DpuiError as exc:
            return self._fail(op, exc, [])
        return self.add_preset(name, config, hotkey=hotkey).model_copy(update={"op": op})

    @traced
    def update_preset(
        self,
        preset_id: str,
        *,
        name: str | None = None,
        config: str | None = None,
        hotkey: str | None = None,
    ) -> ServiceResult:
        """Change fields of a preset. ``hotkey=""`` removes its shortcut.

        ``None`` leaves a field unchanged.
        """
        op = "update_preset"
        warnings: list[str] = []
        try:
            with self._action(f"preset:{preset_id}"):
                collection = self._preset_repository.load_presets()
                current = collection.get(preset_id)
                if current is None:
                    msg = f"No preset with id {preset_id}"
                    raise PresetNotFoundError(msg)

                new_hotkey = current.hotkey
                if hotkey is not None:
                    new_hotkey = self._check_hotkey(hotkey, preset_id=preset_id) if hotkey else None

                updated = _build_preset(
                    id=current.id,
                    name=current.name if name is None else name,
                    config=current.config if config is None else config,
                    hotkey=new_hotkey,
                    created_at=current.created_at,
                )
                self._preset_repository.save_presets(collection.with_preset(updated))
                self._resync_after_preset_write(warnings)
        except DpuiError as exc:
            return self._fail(op, exc, warnings)
        log.info("preset.updated", preset_id=preset_id)
        return ServiceResult(ok=True, op=op, data=preset_item(updated), warnings=warnings)

    @traced
    def set_preset_hotkey(self, preset_id: str, hotkey: str | None) -> ServiceResult:
        """Bind *hotkey* to the preset, or unbind it when *hotkey* is None."""
        result = self.update_preset(preset_id, hotkey=hotkey or "")
        return result.model_copy(update={"op": "set_preset_hotkey"})

    @traced
    def delete_preset(self, preset_id: str) -> ServiceResult:
        """Remove a preset and release its hotkey."""
        op = "delete_preset"
        warnings: list[str] = []
        try:
            with self._action(f"preset:{preset_id}"):
                collection = self._preset_repository.load_presets()
                preset = collection.get(preset_id)
                if preset is None:
                    msg = f"No preset with id {preset_id}"
                    raise PresetNotFoundError(msg)
                self._preset_repository.save_presets(collection.without(preset_id))
                self.hotkeys.unbind(preset_id)
                if self._selected_preset_id == preset_id:
                    self._selected_preset_id = None
                self._resync_after_preset_write(warnings)
        except DpuiError as exc:
            return self._fail(op, exc, warnings)
        log.info("preset.deleted", preset_id=preset_id)
        return ServiceResult(ok=True, op=op, data=preset_item(preset), warnings=warnings)

    def get_preset(self, preset_id: str) -> ServiceResult:
        op = "get_preset"
        preset = self._presets.get(preset_id)
        if preset is None:
            return self._fail(op, PresetNotFoundError(f"No preset with id {preset_id}"), [])
        return ServiceResult(ok=True, op=op, data=preset_item(preset))

    def select_preset(self, preset_id: str | None) -> ServiceResult:
        """Mark a preset as selected in the UI; None clears the selection."""
        op = "select_preset"
        if preset_id is not None and self._presets.get(preset_id) is None:
            return self._fail(op, PresetNotFoundError(f"No preset with id {preset_id}"), [])
        self._selected_preset_id = preset_id
        return ServiceResult(ok=True, op=op, data={"selected": preset_id})

    # ------------------------------------------------------------------
    # Hotkeys
    # ------------------------------------------------------------------

    def check_shortcut(self, shortcut: str) -> ServiceResult:
        """Validate *shortcut* and report whether it is free."""
        op = "check_shortcut"
        try:
            parsed = self.hotkeys.validate_format(shortcut)
        except DpuiError as exc:
            return self._fail(op, exc, [])
        normalized = str(parsed)
        owner = self.hotkeys.owner_of(normalized)
        return ServiceResult(
            ok=True,
            op=op,
            data={
                "shortcut": normalized,
                "glyphs": parsed.glyphs,
                "available": owner is None,
                "owner": owner,
            },
        )

    def list_hotkeys(self) -> ServiceResult:
        items = []
        for binding in self.hotkeys.list_bindings():
            preset = self._presets.get(binding.preset_id)
            items.append(
                {
                    **binding.to_dict(),
                    "glyphs": parse_shortcut(binding.shortcut).glyphs,
                    "preset_name": preset.name if preset else None,
                }
            )
        return ServiceResult(ok=True, op="list_hotkeys", data={"count": len(items), "items": items})

    @traced
    def handle_hotkey_activation(self, preset_id: str) -> ServiceResult:
        """Apply the preset bound to a triggered shortcut.

        A binding whose preset no longer exists is pruned and nothing is applied.
        """
        op = "hotkey_activation"
        warnings: list[str] = []
        if self._presets.get(preset_id) is None:
            pruned = self.hotkeys.prune(p.id for p in self._presets.presets)
            for binding in pruned:
                warnings.append(f"Removed stale hotkey {binding.shortcut}")
            logger.info("Hotkey for missing preset %s ignored", preset_id)
            return ServiceResult(
                ok=True,
                op=op,
                data={"preset_id": preset_id, "applied": False},
                warnings=warnings,
            )

        self._dispatch_event("hotkey_activated", {"preset_id": preset_id}, warnings)
        result = self.apply_preset(preset_id)
        data = {**result.data, "preset_id": preset_id, "applied": result.ok}
        return result.model_copy(
            update={"op": op, "data": data, "warnings": [*warnings, *result.warnings]}
        )

    # ------------------------------------------------------------------
    # Drag (local, speculative)
    # ------------------------------------------------------------------

    def update_display_position(self, display_id: str, x: int, y: int) -> ServiceResult:
        """Move a display locally. Nothing is applied until :meth:`apply_layout`."""
        op = "update_display_position"
        try:
            self._require_display(display_id)
        except DpuiError as exc:
            return self._fail(op, exc, [])
        self._devices = self._devices.with_origin(display_id, x, y)
        return ServiceResult(
            ok=True,
            op=op,
            data={"display_id": display_id, "origin": [x, y], "speculative": True},
        )

    def begin_drag(self, display_id: str, pointer: tuple[float, float]) -> ServiceResult:
        """Pointer-down on a display card. The transform is frozen for the drag."""
        op = "begin_drag"
        try:
            display = self._require_display(display_id)
        except DpuiError as exc:
            return self._fail(op, exc, [])
        if self._drag is not None:
            self._drag.end()
        self._drag = DragGesture(self.canvas_transform(), display, pointer)
        return ServiceResult(
            ok=True,
            op=op,
            data={"display_id": display_id, "offset": list(self._drag.offset)},
        )

    def drag_to(self, pointer: tuple[float, float]) -> ServiceResult:
        """Pointer-move: convert through the inverse transform, update locally."""
        op = "drag_to"
        drag = self._drag
        if drag is None:
            return ServiceResult(
                ok=False,
                op=op,
                error=ServiceError(code="NO_ACTIVE_DRAG", message="No drag in progress"),
            )
        x, y = drag.move(pointer)
        return self.update_display_position(drag.display_id, x, y).model_copy(update={"op": op})

    def end_drag(self) -> ServiceResult:
        """Pointer-up. Dragging alone never applies anything."""
        drag = self._drag
        self._drag = None
        if drag is None:
            return ServiceResult(ok=True, op="end_drag", data={"display_id": None})
        drag.end()
        display = self._devices.get(drag.display_id)
        origin = list(display.origin) if display else None
        return ServiceResult(
            ok=True,
            op="end_drag",
            data={"display_id": drag.display_id, "origin": origin},
        )

    def canvas_layout(self) -> ServiceResult:
        """Fitted canvas geometry for the current device set."""
        transform = self.canvas_transform()
        return ServiceResult(
            ok=True,
            op="canvas_layout",
            data={
                "bounds": asdict(transform.bounds),
                "scale": transform.scale,
                "margin": transform.margin,
                "canvas_size": list(transform.canvas_size),
                "rects": [asdict(transform.place(d)) for d in self._devices.displays],
            },
        )

    # ------------------------------------------------------------------
    # Teardown
    # ------------------------------------------------------------------

    def close(self) -> None:
        """Cancel pending confirmations and release every hotkey."""
        self.toggles.shutdown()
        self.hotkeys.clear()
        self._drag = None

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    @contextmanager
    def _action(self, *keys: str) -> Generator[None]:
        """Mark an action as running; reject overlap on the same keys."""
        busy = self._pending_keys.intersection(keys)
        if busy:
            msg = f"Another action is still running for {', '.join(sorted(busy))}"
            raise ActionPendingError(msg)
        self._pending_keys.update(keys)
        self._depth += 1
        try:
            yield
        finally:
            self._depth -= 1
            self._pending_keys.difference_update(keys)

    def _refresh_devices(self, warnings: list[str]) -> dict[str, Any]:
        with trace_span("list_displays"):
            devices = self._display_service.list()
        self._devices = devices
        if self._drag is not None:
            self._drag.end()
            self._drag = None
        data = self._display_payload()
        self._dispatch_event("display_list_changed", {"displays": data["items"]}, warnings)
        return data

    def _refresh_presets(self, warnings: list[str]) -> dict[str, Any]:
        with trace_span("load_presets"):
            collection = self._preset_repository.load_presets()
        self._presets = collection
        warnings.extend(self.hotkeys.sync(collection.presets))
        if self._selected_preset_id and collection.get(self._selected_preset_id) is None:
            self._selected_preset_id = None
        data = self._preset_payload()
        self._dispatch_event("preset_list_changed", {"presets": data["items"]}, warnings)
        return data

    def _resync_after_preset_write(self, warnings: list[str]) -> None:
        self._refresh_presets(warnings)
        self._refresh_devices(warnings)

    def _display_payload(self) -> dict[str, Any]:
        return dump_validated(
            DisplayListData,
            {
                "count": len(self._devices),
                "enabled_count": self._devices.enabled_count,
                "items": [display_item(d) for d in self._devices.displays],
            },
        )

    def _preset_payload(self) -> dict[str, Any]:
        return dump_validated(
            PresetListData,
            {
                "version": self._presets.version,
                "count": len(self._presets),
                "selected": self._selected_preset_id,
                "items": [preset_item(p) for p in self._presets.presets],
            },
        )

    def _toggle_data(
        self,
        display_id: str,
        outcome: str,
        *,
        remaining: int | None = None,
        enabled: bool | None = None,
    ) -> dict[str, Any]:
        return dump_validated(
            ToggleData,
            {
                "display_id": display_id,
                "outcome": str(outcome),
                "remaining_seconds": remaining,
                "enabled": enabled,
            },
        )

    def _require_display(self, display_id: str) -> Display:
        display = self._devices.get(display_id)
        if display is None:
            msg = f"Display {display_id} not found"
            raise DpuiError(msg, kind=ErrorKind.DISPLAY_NOT_FOUND)
        return display

    def _encode_current(self) -> str:
        try:
            return encode(self._devices, program=self._program)
        except ValueError as exc:
            msg = "No displays to encode; fetch the display list first"
            raise DpuiError(msg, kind=ErrorKind.INVALID_CONFIG) from exc

    def _check_hotkey(self, hotkey: str, *, preset_id: str | None) -> str:
        normalized = str(self.hotkeys.validate_format(hotkey))
        if not self.hotkeys.is_available(normalized, for_preset=preset_id):
            msg = f"Shortcut {normalized} is already in use"
            raise ShortcutUnavailableError(msg)
        return normalized

    def _fail(self, op: str, exc: DpuiError, warnings: list[str]) -> ServiceResult:
        error = ServiceError.from_exception(exc)
        if isinstance(exc, ToolError | PresetStoreError):
            self._error = error
        log.info("action.failed", op=op, code=exc.code, message=exc.message)
        self._dispatch_event(
            "error",
            {"kind": exc.kind.value, "message": exc.message, "retryable": exc.retryable},
            warnings,
        )
        return ServiceResult(ok=False, op=op, error=error, warnings=warnings)

    def _on_toggle_change(self, display_id: str, remaining: int | None) -> None:
        warnings: list[str] = []
        self._dispatch_event(
            "toggle_session_changed",
            {"display_id": display_id, "remaining_seconds": remaining},
            warnings,
        )
        for warning in warnings:
            logger.warning(warning)

    def _on_hotkey_activate(self, preset_id: str) -> None:
        self.handle_hotkey_activation(preset_id)


def _build_preset(**fields: Any) -> Preset:
    try:
        return Preset(**fields)
    except ValidationError as exc:
        messages = "; ".join(e["msg"] for e in exc.errors())
        msg = f"Invalid preset: {messages}"
        raise DpuiError(msg, kind=ErrorKind.INVALID_CONFIG) from exc
