"""
Constant tables for TEXALG.

TEXALG - Exact algebra over a LaTeX subset

A constants table is a plain dict mapping the names the parser produces
("c", "\\hbar", "k_B", ...) to floats. Tables are merged under the caller's
bindings when evaluating, so a binding always wins over a constant.

Custom tables are Python files defining a CONSTANTS dict:

    # ~/.config/texalg/constants/astro.py
    CONSTANTS = {
        "M_sun": 1.98847e30,
        "AU": 1.495978707e11,
    }

and are loaded with load_custom_constants("astro") or a path to the file.
"""

import importlib.util
import logging
from pathlib import Path
from typing import Dict, Mapping, Optional

logger = logging.getLogger(__name__)

ConstantsType = Mapping[str, float]


# ============================================================
# Built-in tables
# ============================================================

# SI values (CODATA 2018)
PHYSICS_CONSTANTS: Dict[str, float] = {
    "c": 299792458.0,               # speed of light, m/s
    "g": 9.80665,                   # standard gravity, m/s^2
    "G": 6.67430e-11,               # gravitational constant
    "h": 6.62607015e-34,            # Planck constant, J s
    "\\hbar": 1.054571817e-34,      # reduced Planck constant
    "k_B": 1.380649e-23,            # Boltzmann constant, J/K
    "N_A": 6.02214076e23,           # Avogadro constant, 1/mol
    "R": 8.314462618,               # gas constant, J/(mol K)
    "q_e": 1.602176634e-19,         # elementary charge, C
    "m_e": 9.1093837015e-31,        # electron mass, kg
    "m_p": 1.67262192369e-27,       # proton mass, kg
    "\\epsilon_0": 8.8541878128e-12,  # vacuum permittivity, F/m
    "\\mu_0": 1.25663706212e-6,     # vacuum permeability, N/A^2
    "\\sigma": 5.670374419e-8,      # Stefan-Boltzmann constant
}

NO_CONSTANTS: Dict[str, float] = {}

BUILTIN_CONSTANTS: Dict[str, ConstantsType] = {
    "none": NO_CONSTANTS,
    "physics": PHYSICS_CONSTANTS,
}

# Where load_custom_constants() looks for NAME.py
CONSTANTS_SEARCH_PATHS = [
    Path("./constants"),
    Path.home() / ".config" / "texalg" / "constants",
]


def merge_bindings(constants: Optional[ConstantsType],
                   bindings: Optional[Mapping[str, float]]) -> Dict[str, float]:
    """
    Combine a constants table with caller bindings.

    Returns:
        A new dict; bindings win on collision.

    Examples:
        merge_bindings({"c": 3e8}, {"c": 1.0, "x": 2.0}) -> {"c": 1.0, "x": 2.0}
    """
    merged = dict(constants or {})
    if bindings:
        merged.update(bindings)
    return merged


def load_custom_constants(name_or_path: str) -> Optional[Dict[str, float]]:
    """
    Load a constants table from a Python file.

    The file should define a CONSTANTS dict.

    Args:
        name_or_path: Either a path to a .py file, or a name to search for
                      in CONSTANTS_SEARCH_PATHS

    Returns:
        The table with float values, or None if no file was found or the
        file defines no CONSTANTS

    Raises:
        Whatever executing the file raises; ValueError if a value is not a
        number
    """
    path = Path(name_or_path)

    if path.suffix == ".py" or "/" in name_or_path or "\\" in name_or_path:
        if not path.exists():
            return None
        candidates = [path]
    else:
        candidates = [d / f"{name_or_path}.py" for d in CONSTANTS_SEARCH_PATHS]

    for constants_path in candidates:
        if not constants_path.exists():
            continue
        spec = importlib.util.spec_from_file_location("custom_constants", constants_path)
        if spec is None or spec.loader is None:
            continue
        module = importlib.util.module_from_spec(spec)
        spec.loader.exec_module(module)
        table = getattr(module, "CONSTANTS", None)
        if table is None:
            logger.warning("%s defines no CONSTANTS", constants_path)
            continue
        logger.debug("loaded %d constants from %s", len(table), constants_path)
        return {str(name): float(value) for name, value in table.items()}

    return None
