# prob/constants.py
import numpy as np

LOG_TWO = np.log(2.0)
NEG_LOG_TWO = -LOG_TWO
LOG_SQRT_TWO_PI = 0.5 * np.log(2.0 * np.pi)
NEG_LOG_SQRT_TWO_PI = -LOG_SQRT_TWO_PI
