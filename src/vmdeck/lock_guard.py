"""
Pre-start disk image lock check.

Before a VM is launched its backing image must not be held open by another
hypervisor. When it is, only a process whose command line names the same VM
is eligible to be killed, and only after the operator confirms.

The check is a time-of-check to time-of-use race: another actor may open the
image between a FREE result and the launch that follows. Killing a holder is
irreversible even if the later launch fails.
"""

from enum import Enum
from pathlib import Path
from typing import Callable, List

import structlog

from vmdeck.exceptions import TerminationFailure
from vmdeck.interfaces.process import ProcessInspector
from vmdeck.models import LockCheckResult, LockState

log = structlog.get_logger(__name__)

ConfirmCallback = Callable[[], bool]


class LockGuardState(str, Enum):
    CHECKING = "checking"
    FREE = "free"
    CONFLICT = "conflict"
    RESOLVED_BY_KILL = "resolved_by_kill"
    ABORT = "abort"


# CONFLICT ends a check without resolving it; the next check starts over.
TERMINAL_STATES = frozenset(
    {
        LockGuardState.FREE,
        LockGuardState.RESOLVED_BY_KILL,
        LockGuardState.ABORT,
    }
)


def never_confirm() -> bool:
    return False


class LockGuard:
    """Detect and optionally resolve a lock conflict on a VM image."""

    def __init__(self, inspector: ProcessInspector):
        self.inspector = inspector
        self.state = LockGuardState.CHECKING

    def _transition(self, state: LockGuardState, **kwargs) -> None:
        log.info("lock_guard.transition", previous=self.state.value, state=state.value, **kwargs)
        self.state = state

    def _result(self, state: LockState, vm_name: str, holders: List[int]) -> LockCheckResult:
        return LockCheckResult(
            state=state,
            vm_name=vm_name,
            holding_pid=holders[0] if holders else None,
            all_holders=tuple(holders),
            guard_state=self.state.value,
        )

    def check_and_resolve(
        self,
        img_file_path: Path,
        vm_name: str,
        confirm: ConfirmCallback = never_confirm,
    ) -> LockCheckResult:
        """Run one check of *img_file_path* for *vm_name*.

        Returns a FREE result when the image is unheld or its holder was
        killed with the operator's consent. A holder that does not look like
        this VM is never signalled.

        Raises:
            TerminationFailure: killing the holder failed; ``result`` on the
                exception is HELD_BY_SELF.
        """
        self.state = LockGuardState.CHECKING
        holders = list(self.inspector.holders(img_file_path))

        if not holders:
            self._transition(LockGuardState.FREE, vm_name=vm_name)
            return self._result(LockState.FREE, vm_name, holders)

        pid = holders[0]
        log.warning(
            "lock_guard.image_in_use",
            vm_name=vm_name,
            path=str(img_file_path),
            pid=pid,
            holder_count=len(holders),
        )

        if not self.inspector.command_line_matches(pid, vm_name):
            self._transition(LockGuardState.CONFLICT, vm_name=vm_name, pid=pid)
            return self._result(LockState.HELD_BY_OTHER, vm_name, holders)

        if not confirm():
            self._transition(LockGuardState.ABORT, vm_name=vm_name, pid=pid, reason="declined")
            return self._result(LockState.HELD_BY_SELF, vm_name, holders)

        try:
            self.inspector.terminate(pid)
        except TerminationFailure as e:
            self._transition(LockGuardState.ABORT, vm_name=vm_name, pid=pid, reason=e.reason)
            raise TerminationFailure(
                pid,
                e.reason,
                vm_name=vm_name,
                result=self._result(LockState.HELD_BY_SELF, vm_name, holders),
            ) from e

        self._transition(LockGuardState.RESOLVED_BY_KILL, vm_name=vm_name, pid=pid)
        return self._result(LockState.FREE, vm_name, holders)
