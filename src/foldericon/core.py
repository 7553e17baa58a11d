from __future__ import annotations

import enum
from dataclasses import dataclass, field
from logging import getLogger
from pathlib import Path
from typing import Callable, Optional

from . import windows
from .attributes import AttributeGuard, AttributeSpec
from .codec import IconReference
from .config_file import ConfigFileStore
from .errors import (
    AttributeReadError,
    AttributeWriteError,
    FolderIconError,
    FolderNotFound,
    IconIndexRequired,
    InvalidIconFile,
    NoIconConfigured,
    ShellRefreshFailed,
)
from .icons import check_icon_source, needs_index
from .paths import StrPath

log = getLogger(__name__)

RefreshFolderIcon = Callable[[StrPath, str, int], None]
PromptForIndex = Callable[[str], int]


class AssignState(enum.Enum):
    IDLE = "idle"
    VALIDATING = "validating"
    UPDATING = "updating"
    REFRESHING = "refreshing"
    RESTORING = "restoring"
    DONE = "done"
    ABORTED = "aborted"


@dataclass
class AssignmentResult:
    folder: Path
    reference: IconReference
    # Absolute icon path handed to the shell.
    icon_path: str
    state: AssignState = AssignState.IDLE
    warnings: list[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.state is AssignState.DONE and not self.warnings


class IconAssignmentService:
    """
    Assign (or re-apply) a folder's custom icon.

    Validating -> Updating -> Refreshing -> Restoring -> Done. Validation and
    configuration write failures abort with the matching FolderIconError; shell
    refresh and attribute failures only add warnings to the result.
    """

    def __init__(
        self,
        store: Optional[ConfigFileStore] = None,
        attributes: Optional[AttributeGuard] = None,
        refresh: Optional[RefreshFolderIcon] = None,
        prompt_for_index: Optional[PromptForIndex] = None,
    ) -> None:
        self.store = store or ConfigFileStore()
        self.attributes = attributes or AttributeGuard()
        self.refresh = refresh or windows.refresh_folder_icon
        self.prompt_for_index = prompt_for_index
        self.state = AssignState.IDLE

    def _enter(self, state: AssignState, folder: Path) -> None:
        log.debug(f"{folder}: {self.state.value} -> {state.value}")
        self.state = state

    def _abort(self, exc: FolderIconError, folder: Path) -> None:
        exc.state = self.state
        self._enter(AssignState.ABORTED, folder)

    def _warn(self, result: AssignmentResult, message: str) -> None:
        log.warning(message)
        result.warnings.append(message)

    def _validate_new_icon(self, folder: Path, new_icon: str, new_index: Optional[int]) -> IconReference:
        # Resolved exactly like a stored entry, so the shell gets the path checked here.
        icon_path = self.store.resolve(folder, IconReference(new_icon)).path
        check_icon_source(icon_path)
        if new_index is None:
            if needs_index(icon_path):
                if self.prompt_for_index is None:
                    raise IconIndexRequired(f"An icon index is required for {icon_path}", path=icon_path)
                new_index = int(self.prompt_for_index(icon_path))
            else:
                new_index = 0
        return IconReference(new_icon, new_index)

    def assign(
        self,
        folder_path: StrPath,
        new_icon: Optional[str] = None,
        new_index: Optional[int] = None,
        attribute_spec: Optional[AttributeSpec] = None,
    ) -> AssignmentResult:
        folder = Path(folder_path)
        self.state = AssignState.IDLE

        self._enter(AssignState.VALIDATING, folder)
        try:
            if not folder.is_dir():
                raise FolderNotFound(f"Folder not found: {folder}", path=str(folder))
            reference = None
            if new_icon is not None:
                reference = self._validate_new_icon(folder, new_icon, new_index)
        except FolderIconError as exc:
            self._abort(exc, folder)
            raise

        self._enter(AssignState.UPDATING, folder)
        ini = self.store.path_for(folder)
        result = AssignmentResult(folder, IconReference(""), "")
        snapshot = self._capture(ini, result)
        try:
            if reference is None:
                reference = self._existing_reference(folder)
            if snapshot is not None:
                self._unlock(ini, snapshot, result)
            self.store.write_icon_entry(folder, reference)
        except FolderIconError as exc:
            if snapshot is not None:
                self._restore(ini, snapshot, result)
            self._abort(exc, folder)
            raise
        result.reference = reference
        result.icon_path = self.store.resolve(folder, reference).path

        self._enter(AssignState.REFRESHING, folder)
        try:
            self.refresh(folder, result.icon_path, reference.index)
        except ShellRefreshFailed as exc:
            self._warn(result, str(exc))

        self._enter(AssignState.RESTORING, folder)
        if snapshot is not None:
            self._restore(ini, snapshot, result)
        if attribute_spec is not None:
            # The icon file is only touched on explicit request.
            for path in (ini, Path(result.icon_path)):
                try:
                    self.attributes.apply_overlay(path, attribute_spec)
                except (AttributeReadError, AttributeWriteError) as exc:
                    self._warn(result, str(exc))

        self._enter(AssignState.DONE, folder)
        result.state = self.state
        return result

    def _capture(self, ini: Path, result: AssignmentResult) -> Optional[int]:
        if not ini.exists():
            return None
        try:
            return self.attributes.capture(ini)
        except AttributeReadError as exc:
            self._warn(result, str(exc))
            return None

    def _unlock(self, ini: Path, snapshot: int, result: AssignmentResult) -> None:
        try:
            self.attributes.unlock(ini, snapshot)
        except AttributeWriteError as exc:
            self._warn(result, str(exc))

    def _restore(self, ini: Path, snapshot: int, result: AssignmentResult) -> None:
        try:
            self.attributes.restore(ini, snapshot)
        except AttributeWriteError as exc:
            self._warn(result, str(exc))

    def _existing_reference(self, folder: Path) -> IconReference:
        """The stored entry, as written in desktop.ini, once its target checks out."""
        raw = self.store.read_raw_entry(folder)
        if not raw:
            raise NoIconConfigured(f"No valid IconResource found in desktop.ini for {folder}", path=str(folder))
        try:
            check_icon_source(self.store.resolve(folder, raw).path)
        except InvalidIconFile as exc:
            raise NoIconConfigured(
                f"The icon configured for {folder} is not usable: {exc}", reason=exc.reason, path=exc.path
            ) from exc
        return raw

    def clear(self, folder_path: StrPath) -> bool:
        """Remove the folder's icon entry. Returns False when there was none."""
        folder = Path(folder_path)
        ini = self.store.path_for(folder)
        with self.attributes.preserved(ini) as snapshot:
            if snapshot is not None:
                self.attributes.unlock(ini, snapshot)
            removed = self.store.remove_icon_entry(folder)
        if removed:
            try:
                self.refresh(folder, "", 0)
            except ShellRefreshFailed as exc:
                log.warning(str(exc))
        return removed
