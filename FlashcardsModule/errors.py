class ContractViolation(AssertionError):
    """An operation was called outside the phase in which it is valid.

    These are programming errors in the caller, never runtime faults, so the
    review core raises instead of clamping state.
    """
