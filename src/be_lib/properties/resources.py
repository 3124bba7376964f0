# Released under MIT License.
# Copyright (c) 2025 Ladislav Bartos and Robert Vacha Lab

"""
Structured representation of a job's resource request.

This module defines the `ResourceSet` dataclass, which captures the queue,
memory, core count, node count, and walltime requested for a job. Every field
is independently optional and no field is ever filled in implicitly.
"""

from dataclasses import asdict, dataclass
from datetime import timedelta

from be_lib.core.common import parse_duration
from be_lib.core.error import BEError
from be_lib.core.logger import get_logger

from .size import Size

logger = get_logger(__name__)


@dataclass(init=False)
class ResourceSet:
    """
    Dataclass representing computational resources requested for a job.
    """

    # Name of the queue to submit the job to
    queue: str | None = None

    # Amount of memory to allocate for the job
    mem: Size | None = None

    # Number of CPU cores to use per node
    cores: int | None = None

    # Number of computing nodes to use
    nodes: int | None = None

    # Maximum allowed runtime of the job
    walltime: timedelta | None = None

    def __init__(
        self,
        queue: str | None = None,
        mem: Size | str | None = None,
        cores: int | str | None = None,
        nodes: int | str | None = None,
        walltime: timedelta | str | None = None,
    ):
        if isinstance(mem, str):
            mem = Size.fromString(mem)

        if isinstance(walltime, str):
            walltime = parse_duration(walltime)

        # convert cores and nodes to integers
        if isinstance(cores, str):
            cores = ResourceSet._parseCount(cores, "cores")
        if isinstance(nodes, str):
            nodes = ResourceSet._parseCount(nodes, "nodes")

        self.queue = queue
        self.mem = mem
        self.cores = cores
        self.nodes = nodes
        self.walltime = walltime

        logger.debug(f"ResourceSet: {self}")

    def isQueueSet(self) -> bool:
        return self.queue is not None

    def isMemSet(self) -> bool:
        return self.mem is not None

    def isCoresSet(self) -> bool:
        return self.cores is not None

    def isNodesSet(self) -> bool:
        return self.nodes is not None

    def isWalltimeSet(self) -> bool:
        return self.walltime is not None

    def isEmpty(self) -> bool:
        """Check whether no resource is requested at all."""
        return not self.toDict()

    def toDict(self) -> dict[str, object]:
        """Return all fields as a dict, excluding fields set to None."""
        return {k: v for k, v in asdict(self).items() if v is not None}

    @staticmethod
    def _parseCount(raw: str, name: str) -> int:
        """
        Convert a string to a positive integer.

        Raises:
            BEError: If the string is not a positive integer.
        """
        try:
            value = int(raw)
        except ValueError as e:
            raise BEError(f"Invalid number of {name}: '{raw}'.") from e

        if value <= 0:
            raise BEError(f"Number of {name} must be positive, not '{value}'.")

        return value
