"""
Generate a site plan image for testing the measuring tool
Creates a 120x80 ft lot drawn at 10 px/ft with:
- 10 ft grey grid
- A 20 ft scale bar to calibrate against
- A 40x30 ft house footprint and an L-shaped fence line
Known answers are written to a metadata file next to the image.
"""

import json
import os

import cv2
import numpy as np

# Configuration
PX_PER_FT = 10
LOT_W_FT = 120
LOT_H_FT = 80
MARGIN_PX = 40

WIDTH_PX = LOT_W_FT * PX_PER_FT + 2 * MARGIN_PX
HEIGHT_PX = LOT_H_FT * PX_PER_FT + 2 * MARGIN_PX

# Colors (BGR format for OpenCV)
PAPER = (245, 245, 240)
GRID = (210, 210, 210)
LOT_LINE = (40, 40, 40)
HOUSE = (180, 120, 60)
FENCE = (50, 50, 200)
SCALE_BAR = (0, 0, 0)


def ft(x_ft, y_ft):
    """Lot coordinates in feet to image pixels"""
    return (MARGIN_PX + int(round(x_ft * PX_PER_FT)), MARGIN_PX + int(round(y_ft * PX_PER_FT)))


print("Generating site plan:")
print(f"  Lot: {LOT_W_FT}x{LOT_H_FT} ft ({WIDTH_PX}x{HEIGHT_PX} px @ {PX_PER_FT} px/ft)")

image = np.full((HEIGHT_PX, WIDTH_PX, 3), PAPER, dtype=np.uint8)

for x in range(0, LOT_W_FT + 1, 10):
    cv2.line(image, ft(x, 0), ft(x, LOT_H_FT), GRID, 1)
for y in range(0, LOT_H_FT + 1, 10):
    cv2.line(image, ft(0, y), ft(LOT_W_FT, y), GRID, 1)
cv2.rectangle(image, ft(0, 0), ft(LOT_W_FT, LOT_H_FT), LOT_LINE, 2)
print("  [OK] Drew 10 ft grid and lot line")

# House footprint 40x30 ft
house = [(20, 20), (60, 20), (60, 50), (20, 50)]
cv2.fillPoly(image, [np.array([ft(*p) for p in house], dtype=np.int32)], HOUSE)
cv2.putText(image, "HOUSE", ft(32, 37), cv2.FONT_HERSHEY_SIMPLEX, 1.0, (255, 255, 255), 2)
print("  [OK] Drew 40x30 ft house footprint")

# Fence: 40 ft along the back, then 30 ft down the side
fence = [(70, 10), (110, 10), (110, 40)]
for a, b in zip(fence, fence[1:]):
    cv2.line(image, ft(*a), ft(*b), FENCE, 3)
print("  [OK] Drew 70 ft fence line")

# Scale bar: 20 ft
bar_start, bar_end = (5, 75), (25, 75)
cv2.line(image, ft(*bar_start), ft(*bar_end), SCALE_BAR, 3)
for end in (bar_start, bar_end):
    x, y = ft(*end)
    cv2.line(image, (x, y - 8), (x, y + 8), SCALE_BAR, 3)
cv2.putText(image, "20 ft", ft(12, 73), cv2.FONT_HERSHEY_SIMPLEX, 0.6, SCALE_BAR, 2)
print("  [OK] Drew 20 ft scale bar")

out_dir = os.path.join(os.path.dirname(__file__), "..", "test")
os.makedirs(out_dir, exist_ok=True)

image_path = os.path.join(out_dir, "site_plan.png")
cv2.imwrite(image_path, image)
print(f"\n[OK] Saved site plan: {image_path}")

metadata = {
    "description": "Site plan for measuring tool testing",
    "pixels_per_foot": PX_PER_FT,
    "scale_bar": {
        "length_ft": 20,
        "points_px": [ft(*bar_start), ft(*bar_end)],
    },
    "house": {
        "points_px": [ft(*p) for p in house],
        "area_sqft": 40 * 30,
        "perimeter_ft": 140,
    },
    "fence": {
        "points_px": [ft(*p) for p in fence],
        "length_ft": 70,
    },
}

metadata_path = os.path.join(out_dir, "site_plan_metadata.json")
with open(metadata_path, 'w') as f:
    json.dump(metadata, f, indent=2)
print(f"[OK] Saved metadata: {metadata_path}")

print("\nTo try it:")
print("  python sitemeasure.py test/site_plan.png --service-unit sqft")
print("Calibrate on the scale bar (20 ft), then trace the house: expect 1200 sq ft.")
