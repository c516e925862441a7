"""HotkeyRegistry: conflict-free shortcut <-> preset bindings.

INVARIANT: at most one binding per normalized shortcut and at most one per
preset. Comparisons use :func:`~dpui.domain.shortcuts.normalize_shortcut`, so
``shift+cmd+1`` and ``Cmd+Shift+1`` collide.

The registry optionally drives an OS backend. Activation routing goes
backend callback -> :meth:`HotkeyRegistry.activate` -> ``on_activate(preset_id)``.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass

from dpui.domain.errors import DpuiError, ShortcutUnavailableError
from dpui.domain.presets import Preset
from dpui.domain.shortcuts import Shortcut, normalize_shortcut, parse_shortcut
from dpui.infrastructure.hotkeys import HotkeyBackend

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class HotkeyBinding:
    """One shortcut bound to one preset."""

    preset_id: str
    shortcut: str
    description: str

    def to_dict(self) -> dict[str, str]:
        return {
            "preset_id": self.preset_id,
            "shortcut": self.shortcut,
            "description": self.description,
        }


class HotkeyRegistry:
    """Owns all bindings and their OS registrations."""

    def __init__(
        self,
        backend: HotkeyBackend | None = None,
        *,
        on_activate: Callable[[str], None] | None = None,
    ) -> None:
        self._backend = backend
        self._bindings: dict[str, HotkeyBinding] = {}
        self._owners: dict[str, str] = {}
        self.on_activate = on_activate

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    @staticmethod
    def validate_format(shortcut: str) -> Shortcut:
        """Parse *shortcut*; raises InvalidShortcutFormatError."""
        return parse_shortcut(shortcut)

    def is_available(self, shortcut: str, *, for_preset: str | None = None) -> bool:
        """True iff no binding owns *shortcut*, other than *for_preset*'s own."""
        owner = self._owners.get(normalize_shortcut(shortcut))
        return owner is None or owner == for_preset

    def owner_of(self, shortcut: str) -> str | None:
        return self._owners.get(normalize_shortcut(shortcut))

    def binding_for(self, preset_id: str) -> HotkeyBinding | None:
        return self._bindings.get(preset_id)

    def list_bindings(self) -> list[HotkeyBinding]:
        return sorted(self._bindings.values(), key=lambda b: b.shortcut)

    @property
    def backend(self) -> HotkeyBackend | None:
        return self._backend

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def bind(
        self, preset_id: str, shortcut: str, *, description: str | None = None
    ) -> HotkeyBinding:
        """Bind *shortcut* to *preset_id*, releasing the preset's previous shortcut."""
        parsed = parse_shortcut(shortcut)
        normalized = str(parsed)

        owner = self._owners.get(normalized)
        if owner is not None and owner != preset_id:
            msg = f"Shortcut {normalized} is already in use"
            raise ShortcutUnavailableError(msg)

        current = self._bindings.get(preset_id)
        if current is not None and current.shortcut == normalized:
            return current

        if self._backend is not None:
            self._backend.register(parsed, self._activation_callback(normalized))
        if current is not None:
            self._release(current)

        binding = HotkeyBinding(
            preset_id=preset_id,
            shortcut=normalized,
            description=description or f"Apply preset with {normalized}",
        )
        self._bindings[preset_id] = binding
        self._owners[normalized] = preset_id
        logger.debug("Bound %s to preset %s", normalized, preset_id)
        return binding

    def unbind(self, preset_id: str) -> HotkeyBinding | None:
        """Remove the preset's binding; no-op if there is none."""
        binding = self._bindings.get(preset_id)
        if binding is None:
            return None
        self._release(binding)
        return binding

    def clear(self) -> None:
        for preset_id in list(self._bindings):
            self.unbind(preset_id)

    def sync(self, presets: Iterable[Preset]) -> list[str]:
        """Make bindings mirror the ``hotkey`` fields of *presets*.

        Bindings whose preset is gone or has no hotkey are removed. Invalid or
        duplicate hotkeys are skipped. Returns human-readable warnings.
        """
        wanted: dict[str, Preset] = {p.id: p for p in presets}
        warnings: list[str] = []

        for preset_id, binding in list(self._bindings.items()):
            preset = wanted.get(preset_id)
            if preset is None or not preset.hotkey:
                self._release(binding)

        for preset in wanted.values():
            if not preset.hotkey:
                continue
            try:
                self.bind(preset.id, preset.hotkey, description=f"Apply {preset.name}")
            except DpuiError as exc:
                warnings.append(f"Hotkey for preset {preset.name!r} skipped: {exc.message}")
        return warnings

    def prune(self, valid_preset_ids: Iterable[str]) -> list[HotkeyBinding]:
        """Drop bindings that reference presets not in *valid_preset_ids*."""
        valid = set(valid_preset_ids)
        removed = [b for pid, b in self._bindings.items() if pid not in valid]
        for binding in removed:
            self._release(binding)
        return removed

    # ------------------------------------------------------------------
    # Activation routing
    # ------------------------------------------------------------------

    def activate(self, shortcut: str) -> str | None:
        """Resolve a triggered shortcut and notify ``on_activate``.

        Returns the preset id, or None when nothing is bound.
        """
        preset_id = self._owners.get(normalize_shortcut(shortcut))
        if preset_id is None:
            logger.debug("Unbound shortcut triggered: %s", shortcut)
            return None
        if self.on_activate is not None:
            self.on_activate(preset_id)
        return preset_id

    def attach(self, backend: HotkeyBackend) -> None:
        """Switch to *backend*, registering every existing binding with it."""
        self.detach()
        self._backend = backend
        for binding in self._bindings.values():
            backend.register(
                parse_shortcut(binding.shortcut), self._activation_callback(binding.shortcut)
            )

    def detach(self) -> None:
        """Unregister every binding from the current backend and drop it."""
        backend = self._backend
        if backend is None:
            return
        for binding in self._bindings.values():
            backend.unregister(parse_shortcut(binding.shortcut))
        self._backend = None

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _activation_callback(self, normalized: str) -> Callable[[], None]:
        def _fire() -> None:
            self.activate(normalized)

        return _fire

    def _release(self, binding: HotkeyBinding) -> None:
        self._bindings.pop(binding.preset_id, None)
        self._owners.pop(binding.shortcut, None)
        if self._backend is not None:
            self._backend.unregister(parse_shortcut(binding.shortcut))
        logger.debug("Released %s from preset %s", binding.shortcut, binding.preset_id)
