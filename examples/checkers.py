import random
from wfcgen import *

source = image_from_chars(
    """
    RB,
    BR
"""
)

for width, height in [(8, 8), (7, 7), (7, 1)]:
    for periodic in [True, False]:
        wfc = create_wfc(source, (width, height), periodic=periodic)
        success = generate_with_retries(wfc, random.Random(0).random, retries=2)
        print(f"{width}x{height} periodic={periodic}: {'ok' if success else 'contradiction'}")
        if success:
            print(wfc.values())
