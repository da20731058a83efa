"""Match mount requests to free volumes from the provider inventory."""

from __future__ import annotations

import logging
import random
from collections import defaultdict
from typing import Any, Dict, List, Sequence

from fr_common.errors import VolumeAllocationError
from fr_provisioner.models.config import BackendConfig
from fr_provisioner.models.mounts import MountRequest
from fr_provisioner.models.types import Volume
from fr_provisioner.services.http_client import HttpRetryClient

logger = logging.getLogger(__name__)


class VolumeAllocator:
    """Assign volume ids to mounts that only name the volume they want."""

    def __init__(self, http: HttpRetryClient, rng: random.Random | None = None) -> None:
        self._http = http
        self._rng = rng or random.SystemRandom()

    def fetch_volumes(self, config: BackendConfig) -> List[Volume]:
        data = self._http.get(
            f"{config.host}/v1/apps/{config.app}/volumes",
            headers={
                "Accept": "application/json",
                "Authorization": f"Bearer {config.token}",
            },
            connect_timeout_ms=config.boot_timeout,
        )
        return [Volume.from_api(item) for item in data or []]

    def allocate(
        self, mounts: Sequence[MountRequest], config: BackendConfig
    ) -> List[Dict[str, Any]]:
        """Return mount payloads in input order, each bound to a volume id.

        Mounts carrying an explicit ``volume`` pass through untouched. The
        others draw from a shuffled pool of eligible volumes with a matching
        name; a drawn id is not handed out twice within one call.
        """
        if not mounts:
            return []

        volumes = self.fetch_volumes(config)
        if not volumes:
            raise VolumeAllocationError(
                "no Fly volumes found", context={"app": config.app}
            )

        eligible = [vol for vol in volumes if vol.is_available_in(config.region)]
        self._rng.shuffle(eligible)
        pools: Dict[str, List[str]] = defaultdict(list)
        for vol in eligible:
            pools[vol.name].append(vol.id)

        resolved: List[Dict[str, Any]] = []
        for mount in mounts:
            if mount.volume is None:
                pool = pools.get(mount.name)
                if not pool:
                    raise VolumeAllocationError(
                        f'no available Fly volumes with the name "{mount.name}" '
                        f'in region "{config.region}" found',
                        context={"mount": mount.name, "region": config.region},
                    )
                mount = mount.model_copy(update={"volume": pool.pop(0)})
                logger.debug("Allocated volume %s for mount %s", mount.volume, mount.name)
            resolved.append(mount.to_payload())
        return resolved
