def sample_discrete(weights, r):
    """
    Pick an index from `weights` (non-negative masses, not necessarily
    normalised) using a uniform draw `r` in [0, 1).

    Zero-weight slices are never returned unless every weight is zero, in
    which case the answer is 0.
    """
    total = 0.0
    last = -1
    for i, w in enumerate(weights):
        total += w
        if w > 0:
            last = i
    if last == -1:
        return 0

    r *= total
    acc = 0.0
    for i, w in enumerate(weights):
        if w <= 0:
            continue
        acc += w
        if r <= acc:
            return i
    return last
