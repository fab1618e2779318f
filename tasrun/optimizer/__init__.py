"""Parameter optimizer — resumable exponential/binary search over a duration."""
