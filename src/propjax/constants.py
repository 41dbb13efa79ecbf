"""
The `constants` module defines the mathematical and physical constants used by
the analytical propagation theories.
"""

from jax.numpy import pi as PI

# Mathematical Constants
"""
Constant to convert degrees to radians. Equal to 2pi/360. Units: *rad/deg*
"""
DEG2RAD = 2.0 * PI / 360.0

"""
Constant to convert radians to degrees. Equal to 360/2pi. Units: *deg/rad*
"""
RAD2DEG = 360.0 / (PI * 2.0)

# Earth Constants
"""
Earth's equatorial radius. [m]

References:

1. GGM05s Gravity Model
"""
R_EARTH = 6.378136300e6  # [m] GGM05s Value

"""
Earth's gravitational constant. [m^3/s^2]

References:

1. GGM05s Gravity Model
"""
GM_EARTH = 3.986004415e14  # [m^3/s^2] GGM05s Value

"""
Earth's equatorial radius of the EGM96 gravity field. [m]
"""
EGM96_EARTH_EQUATORIAL_RADIUS = 6378136.3

"""
Earth's gravitational constant of the EGM96 gravity field. [m^3/s^2]
"""
EGM96_EARTH_MU = 3.986004415e14

"""
Un-normalized zonal coefficients C20..C60 of the EGM96 gravity field.
"""
EGM96_EARTH_C20 = -1.08262668355e-3
EGM96_EARTH_C30 = 2.53265648533e-6
EGM96_EARTH_C40 = 1.62200029734e-6
EGM96_EARTH_C50 = 2.27296082869e-7
EGM96_EARTH_C60 = -5.40681239107e-7

"""
Earth's equatorial radius of the EIGEN-5C gravity field. [m]
"""
EIGEN5C_EARTH_EQUATORIAL_RADIUS = 6378136.46

"""
Earth's gravitational constant of the EIGEN-5C gravity field. [m^3/s^2]
"""
EIGEN5C_EARTH_MU = 3.986004415e14

"""
Un-normalized zonal coefficients C20..C60 of the EIGEN-5C gravity field.
"""
EIGEN5C_EARTH_C20 = -1.08262631303e-3
EIGEN5C_EARTH_C30 = 2.53248017972e-6
EIGEN5C_EARTH_C40 = 1.61994537014e-6
EIGEN5C_EARTH_C50 = 2.27888264414e-7
EIGEN5C_EARTH_C60 = -5.40618601332e-7

# Spacecraft Constants
"""
Default spacecraft mass used when none is supplied. Units: *kg*
"""
DEFAULT_MASS = 1000.0
