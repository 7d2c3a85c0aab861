# --- Physical Constants ---
PROTON_MASS = 1.007276
ELECTRON_MASS = 0.000548579909

# --- Chain Enumeration Defaults ---
# Bounds used when no ChainParams are given. Fatty acids shorter than C2
# are not meaningful lipid chains.
DEFAULT_MIN_CHAIN_LENGTH = 2
DEFAULT_MAX_CHAIN_LENGTH = 26
DEFAULT_MAX_DBES = 6

# --- Matching Defaults ---
DEFAULT_MS1_TOLERANCE_ABSOLUTE = 0.005
DEFAULT_MS1_TOLERANCE_PPM = 5.0
DEFAULT_MSMS_TOLERANCE_ABSOLUTE = 0.01
DEFAULT_MSMS_TOLERANCE_PPM = 10.0
DEFAULT_MIN_MSMS_SCORE = 60.0

# Number of decimals kept when a predicted m/z is used in a dedup/sort key.
# Well below any realistic MS/MS tolerance.
MZ_KEY_DECIMALS = 5

# Valid numbers of chains in a lipid class template.
SUPPORTED_CHAIN_CARDINALITIES = (1, 2, 3)
