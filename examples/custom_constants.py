"""
Example custom constants table for TEXALG.

This file demonstrates how to add named constants beyond the built-in
physics table.

Usage:
    texalg -c examples/custom_constants.py -n -e "\\frac{M_s}{M_e}"

Or in scripts:
    :constants examples/custom_constants.py
    :eval \\frac{G M_s}{d_{AU}^2}
"""

from texalg import PHYSICS_CONSTANTS

# Start with the physics table and extend it
CONSTANTS = {
    **PHYSICS_CONSTANTS,

    # Astronomy
    "M_s": 1.98847e30,          # solar mass, kg
    "M_e": 5.9722e24,           # earth mass, kg
    "R_e": 6.3781e6,            # earth equatorial radius, m
    "d_{AU}": 1.495978707e11,   # astronomical unit, m
    "d_{ly}": 9.4607304725808e15,  # light year, m

    # Chemistry
    "\\rho_w": 997.0,           # density of water at 25 C, kg/m^3
    "V_m": 22.41396954e-3,      # molar volume of an ideal gas at STP, m^3/mol
}
