"""
One-group diffusion material properties.

Each material zone carries the four constants that parameterize the
element kernels:

    xs_a : macroscopic absorption cross-section Sigma_a [1/length]
    xs_f : macroscopic fission cross-section Sigma_f [1/length]
    nu   : mean neutrons released per fission [-]
    d    : diffusion coefficient D = 1 / (3 * Sigma_tr) [length]

Zones are addressed by the integer material_ids stored on the mesh.

Usage:
    lib = MaterialLibrary({
        0: DiffusionMaterial(xs_a=0.0153, xs_f=0.0077, nu=2.43, d=0.9),
        1: DiffusionMaterial(xs_a=0.0003, xs_f=0.0, nu=0.0, d=0.84),
    })
    mat = lib[mesh.material_ids[e]]
"""

import math
from dataclasses import dataclass, asdict

from ..errors import InvalidMaterialError


@dataclass(frozen=True)
class DiffusionMaterial:
    """Material constants of one zone.

    Raises
    ------
    InvalidMaterialError
        If any constant is negative or not finite.
    """
    xs_a: float
    xs_f: float
    nu: float
    d: float

    def __post_init__(self):
        for name, value in asdict(self).items():
            try:
                value = float(value)
            except (TypeError, ValueError):
                raise InvalidMaterialError(
                    f"{name} must be a real number, got {value!r}"
                ) from None
            if not math.isfinite(value):
                raise InvalidMaterialError(f"{name} must be finite, got {value}")
            if value < 0.0:
                raise InvalidMaterialError(f"{name} must be non-negative, got {value}")
            object.__setattr__(self, name, value)

    @property
    def nu_sigma_f(self):
        """Production cross-section nu * Sigma_f."""
        return self.nu * self.xs_f

    @property
    def is_fissile(self):
        return self.nu_sigma_f > 0.0

    def k_infinity(self):
        """Infinite-medium multiplication factor nu*Sigma_f / Sigma_a."""
        if self.xs_a == 0.0:
            return math.inf if self.is_fissile else 0.0
        return self.nu_sigma_f / self.xs_a

    def diffusion_length(self):
        """L = sqrt(D / Sigma_a)."""
        if self.xs_a == 0.0:
            return math.inf
        return math.sqrt(self.d / self.xs_a)


class MaterialLibrary:
    """
    Zone ID to DiffusionMaterial mapping.

    Parameters
    ----------
    materials : dict, optional
        zone_id (int) -> DiffusionMaterial, or a dict with keys
        'xs_a', 'xs_f', 'nu', 'd'.
    """

    def __init__(self, materials=None):
        self._materials = {}
        for zone, mat in (materials or {}).items():
            self.add(zone, mat)

    def add(self, zone, material):
        """Register a material for a zone, replacing any previous one."""
        if isinstance(material, dict):
            material = DiffusionMaterial(**material)
        if not isinstance(material, DiffusionMaterial):
            raise TypeError(
                f"Zone {zone}: expected DiffusionMaterial or dict, "
                f"got {type(material).__name__}"
            )
        self._materials[int(zone)] = material

    def __getitem__(self, zone):
        try:
            return self._materials[int(zone)]
        except KeyError:
            raise KeyError(
                f"No material defined for zone {zone}. "
                f"Available zones: {sorted(self._materials)}"
            ) from None

    def __contains__(self, zone):
        return int(zone) in self._materials

    def __len__(self):
        return len(self._materials)

    def __iter__(self):
        return iter(sorted(self._materials))

    def zones(self):
        return sorted(self._materials)

    def fissile_zones(self):
        """Zones with nu*Sigma_f > 0."""
        return [z for z in self.zones() if self._materials[z].is_fissile]
