import random
import numpy as np
from wfcgen import *
from wfcgen.basis import RIGHT, DOWN, LEFT, UP

tileset = Tileset()


def block(letter):
    return image_from_chars(letter)


sea = tileset.add("sea", block("U"))
beach = tileset.add("beach", block("Y"))
grass = tileset.add("grass", block("G"))
forest = tileset.add("forest", block("E"))

for tile, count in [(sea, 6), (beach, 2), (grass, 4), (forest, 3)]:
    tileset.counts[tile] = count

everywhere = [RIGHT, DOWN, LEFT, UP]

for a, b in [(sea, sea), (beach, beach), (grass, grass), (forest, forest)]:
    tileset.connect(a, b, everywhere)

# sea -> beach -> grass -> forest, never skipping a step
for a, b in [(sea, beach), (beach, grass), (grass, forest)]:
    tileset.connect(a, b, everywhere)
    tileset.connect(b, a, everywhere)

model = tileset.build(sum(tileset.counts))
print(model)

wfc = Wfc(model, 48, 32, periodic=True)

if not generate_with_retries(wfc, random.Random(1).random):
    print("!!")
    print(wfc.collapse_status())
else:
    print(wfc.values())
    save_image("coast.png", np.repeat(np.repeat(wfc.generated_image(), 4, 0), 4, 1))
