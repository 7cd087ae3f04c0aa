"""
MDISimulator SmartCGMS Game Binding
ctypes binding for the native SmartCGMS "game-wrapper" shared library.
"""

import ctypes
import ctypes.util
import functools
import logging
import os
from typing import Any, Optional, Tuple

from ..core.base_classes import BaseGlucoseModel, ModelReading, ScheduledSignal
from ..core.exceptions import ModelInitError

DEFAULT_LIBRARY_NAME = "game-wrapper"

logger = logging.getLogger(__name__)


class GUID(ctypes.Structure):
    """Windows-style GUID layout expected by the native library."""
    _fields_ = [
        ("data1", ctypes.c_uint32),
        ("data2", ctypes.c_uint16),
        ("data3", ctypes.c_uint16),
        ("data4", ctypes.c_ubyte * 8),
    ]

    @classmethod
    def from_uuid(cls, value) -> "GUID":
        # bytes_le matches the mixed-endian in-memory GUID layout
        return cls.from_buffer_copy(value.bytes_le)


def _declare_signatures(library: Any) -> Any:
    double_p = ctypes.POINTER(ctypes.c_double)

    library.scgms_game_create.argtypes = [
        ctypes.c_uint16, ctypes.c_uint16, ctypes.c_uint32, ctypes.c_char_p
    ]
    library.scgms_game_create.restype = ctypes.c_void_p

    library.scgms_game_step.argtypes = [
        ctypes.c_void_p, ctypes.POINTER(GUID), double_p, double_p, ctypes.c_uint32,
        double_p, double_p, double_p, double_p,
    ]
    library.scgms_game_step.restype = ctypes.c_int32

    library.scgms_game_terminate.argtypes = [ctypes.c_void_p]
    library.scgms_game_terminate.restype = ctypes.c_int32
    return library


@functools.lru_cache(maxsize=None)
def load_library(name: str = DEFAULT_LIBRARY_NAME) -> Any:
    """Loads and prepares the native game library.

    Args:
        name (str): A path to the shared library, or a bare library name
            resolved with `ctypes.util.find_library`.

    Raises:
        ModelInitError: If the library cannot be found or loaded.
    """
    path = name if os.path.sep in name or os.path.exists(name) else ctypes.util.find_library(name)
    if path is None:
        raise ModelInitError(f"Shared library '{name}' not found")
    try:
        library = ctypes.CDLL(path)
    except OSError as e:
        raise ModelInitError(f"Could not load shared library '{path}': {e}") from e
    return _declare_signatures(library)


class ScgmsGameModel(BaseGlucoseModel):
    """A SmartCGMS game session driven through the native library.

    Attributes:
        config_class (int): Model configuration class.
        config_id (int): Model configuration identifier.
        step_ms (int): Length of one step in milliseconds.
        log_target (str): Path of the session's log file.
    """
    def __init__(self, config_class: int = 1, config_id: int = 1, step_ms: int = 60 * 1000,
                 log_target: str = "testlog.txt", library: Optional[Any] = None,
                 library_name: str = DEFAULT_LIBRARY_NAME):
        """Creates a game session.

        Args:
            config_class (int): Model configuration class.
            config_id (int): Model configuration identifier.
            step_ms (int): Step length in milliseconds.
            log_target (str): Log file for this session; its directory is
                created if missing.
            library (Optional[Any]): An already loaded library object. If
                None, `library_name` is loaded with `load_library`.
            library_name (str): Library to load when `library` is None.

        Raises:
            ModelInitError: If the session could not be created.
        """
        super().__init__()
        self.config_class = config_class
        self.config_id = config_id
        self.step_ms = step_ms
        self.log_target = log_target
        self._library = library if library is not None else load_library(library_name)

        log_dir = os.path.dirname(log_target)
        if log_dir:
            os.makedirs(log_dir, exist_ok=True)

        self._handle = self._library.scgms_game_create(
            config_class, config_id, step_ms, log_target.encode("ascii", errors="replace")
        )
        if not self._handle:
            self._handle = None
            raise ModelInitError("Could not create game instance")
        logger.debug("Created SmartCGMS game session logging to '%s'", log_target)

    @property
    def is_valid(self) -> bool:
        return self._handle is not None

    def _advance(self, signals: Tuple[ScheduledSignal, ...]) -> ModelReading:
        # cannot step on an invalid instance
        if self._handle is None:
            return ModelReading(False, float("nan"), float("nan"), float("nan"), float("nan"))

        count = len(signals)
        ids = (GUID * count)(*[GUID.from_uuid(s.signal_id) for s in signals])
        levels = (ctypes.c_double * count)(*[s.level for s in signals])
        times = (ctypes.c_double * count)(*[s.time for s in signals])

        bg = ctypes.c_double()
        ig = ctypes.c_double()
        iob = ctypes.c_double()
        cob = ctypes.c_double()

        result = self._library.scgms_game_step(
            self._handle, ids, levels, times, count,
            ctypes.pointer(bg), ctypes.pointer(ig), ctypes.pointer(iob), ctypes.pointer(cob),
        )
        return ModelReading(
            ok=result > 0,
            blood_glucose=bg.value,
            interstitial_glucose=ig.value,
            insulin_on_board=iob.value,
            carbs_on_board=cob.value,
        )

    def terminate(self) -> bool:
        # cannot terminate an empty instance
        if self._handle is None:
            return False
        result = self._library.scgms_game_terminate(self._handle) > 0
        if result:
            self._handle = None
        return result
