"""
Address and reporting constants.
Addresses in the trace are 64-bit unsigned values. The tag, set index and block
offset fields always add up to the full address width.
"""
ADDRESS_BITS = 64
ADDRESS_MASK = (1 << ADDRESS_BITS) - 1

RESULTS_FILE = ".csim_results"

LOGGER_NAME = "csim"
