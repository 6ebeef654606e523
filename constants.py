"""
Trace and address constants.
Addresses in valgrind traces are 64 bit. A trace line starts with one of the kind
letters below: I is an instruction fetch, L a data load, S a data store and M a data
modify (a load followed by a store to the same address).
"""
ADDRESS_WIDTH_BITS = 64
MAX_ADDRESS = (1 << ADDRESS_WIDTH_BITS) - 1

KIND_INSTRUCTION = "I"
KIND_LOAD = "L"
KIND_STORE = "S"
KIND_MODIFY = "M"

RESULTS_FILE = ".csim_results"
