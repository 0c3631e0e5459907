# domain/model/upload_state.py
from enum import Enum


class UploadState(str, Enum):
    IDLE = "idle"
    CAPTURING = "capturing"
    PICKING = "picking"
    PROCESSING = "processing"
    PREVIEWING = "previewing"
    UPLOADING = "uploading"
    DONE = "done"

    @property
    def in_flight(self) -> bool:
        return self in IN_FLIGHT_STATES


IN_FLIGHT_STATES = frozenset(
    {UploadState.CAPTURING, UploadState.PICKING, UploadState.PROCESSING, UploadState.UPLOADING}
)

# ---- tabela de transições ---------------------------------------------
TRANSITIONS: dict[UploadState, frozenset[UploadState]] = {
    UploadState.IDLE: frozenset({UploadState.CAPTURING, UploadState.PICKING}),
    UploadState.CAPTURING: frozenset({UploadState.PROCESSING, UploadState.IDLE}),
    UploadState.PICKING: frozenset({UploadState.PROCESSING, UploadState.IDLE}),
    UploadState.PROCESSING: frozenset({UploadState.PREVIEWING, UploadState.IDLE}),
    UploadState.PREVIEWING: frozenset({UploadState.UPLOADING, UploadState.IDLE}),
    UploadState.UPLOADING: frozenset({UploadState.DONE, UploadState.PREVIEWING, UploadState.IDLE}),
    UploadState.DONE: frozenset(),
}


def can_transition(current: UploadState, target: UploadState) -> bool:
    return target in TRANSITIONS[current]
