"""
ImageCanvas - draws the background image and measurement overlays on a Tk
canvas using the zoom/pan of a ViewTransform.
"""

import tkinter as tk

import cv2
import cv3
import numpy as np
from PIL import Image, ImageTk

from .geometry import centroid
from .models import MeasurementKind

# RGB colours
FINISHED_COLOR = (16, 185, 129)
ACTIVE_COLOR = (59, 130, 246)
REFERENCE_COLOR = (0, 255, 255)
STROKE_COLOR = (255, 87, 34)
LABEL_COLOR = (255, 255, 255)
BACKGROUND = 64


class ImageCanvas:
    """Renders an image plus measurement overlays onto a Tk canvas"""

    def __init__(self, canvas, canvas_width, canvas_height, view):
        self.canvas = canvas
        self.canvas_width = canvas_width
        self.canvas_height = canvas_height
        self.view = view
        self.needs_initial_center = True

        # PhotoImage reference (must keep reference to prevent garbage collection)
        self.photo = None

    def update_canvas_size(self, width, height):
        self.canvas_width = width
        self.canvas_height = height

    def zoom_fit(self):
        self.view.reset()
        self.needs_initial_center = True

    def _fit(self, image_rgb):
        height, width = image_rgb.shape[:2]
        self.view.base_scale = min(self.canvas_width / width, self.canvas_height / height) * 0.98

    def render(self, image_rgb, session, preview=True):
        """
        Draw image_rgb (or a blank sheet when None) with the session's strokes,
        measurements, in-progress chain and calibration reference.
        """
        canvas_image = np.full((self.canvas_height, self.canvas_width, 3), BACKGROUND, dtype=np.uint8)

        if image_rgb is not None:
            self._fit(image_rgb)
            self._paste_image(canvas_image, image_rgb)
        else:
            self.view.base_scale = 1.0
            canvas_image[:] = 255

        for stroke in session.strokes:
            self._draw_polyline(canvas_image, stroke.points, STROKE_COLOR, closed=False, t=2)

        for m in session.measurements:
            closed = m.kind is MeasurementKind.AREA
            self._draw_polyline(canvas_image, m.points, FINISHED_COLOR, closed=closed, t=2)
            self._draw_vertices(canvas_image, m.points, FINISHED_COLOR)
            anchor = centroid(m.points) if closed else m.points[-1]
            self._draw_label(canvas_image, anchor, f"{m.label}: {m.value:.2f} {m.unit}")

        chain = list(session.chain.points)
        if preview and chain and session.chain.preview is not None:
            chain.append(session.chain.preview)
        self._draw_polyline(canvas_image, chain, ACTIVE_COLOR, closed=False, t=2)
        self._draw_vertices(canvas_image, session.chain.points, ACTIVE_COLOR)

        reference = session.calibrator.points
        self._draw_polyline(canvas_image, reference, REFERENCE_COLOR, closed=False, t=1)
        self._draw_vertices(canvas_image, reference, REFERENCE_COLOR)

        img_pil = Image.fromarray(canvas_image)
        self.photo = ImageTk.PhotoImage(image=img_pil)
        self.canvas.delete("all")
        self.canvas.create_image(0, 0, anchor=tk.NW, image=self.photo)

    def _paste_image(self, canvas_image, image_rgb):
        height, width = image_rgb.shape[:2]
        scale = self.view.effective_scale
        new_width = max(1, int(width * scale))
        new_height = max(1, int(height * scale))
        display_image = cv3.resize(image_rgb, new_width, new_height)

        if self.needs_initial_center:
            self.view.pan_offset = [(self.canvas_width - new_width) / 2.0,
                                    (self.canvas_height - new_height) / 2.0]
            self.needs_initial_center = False

        pan_x, pan_y = self.view.pan_offset
        x_offset = int(max(0, pan_x))
        y_offset = int(max(0, pan_y))
        img_x_start = int(max(0, -pan_x))
        img_y_start = int(max(0, -pan_y))
        img_x_end = int(min(new_width, img_x_start + self.canvas_width - x_offset))
        img_y_end = int(min(new_height, img_y_start + self.canvas_height - y_offset))

        if img_y_end > img_y_start and img_x_end > img_x_start:
            visible = display_image[img_y_start:img_y_end, img_x_start:img_x_end]
            h, w = visible.shape[:2]
            canvas_image[y_offset:y_offset + h, x_offset:x_offset + w] = visible

    def _to_canvas(self, point):
        x, y = self.view.image_to_canvas_coords(point[0], point[1])
        return int(x), int(y)

    def _draw_polyline(self, canvas_image, points, color, closed, t):
        if len(points) < 2:
            return
        coords = [self._to_canvas(p) for p in points]
        if closed and len(coords) > 2:
            coords.append(coords[0])
        for (x1, y1), (x2, y2) in zip(coords, coords[1:]):
            cv3.line(canvas_image, x1, y1, x2, y2, color=color, t=t)

    def _draw_vertices(self, canvas_image, points, color):
        for point in points:
            x, y = self._to_canvas(point)
            cv3.circle(canvas_image, x, y, 5, color=color, t=1)
            cv3.circle(canvas_image, x, y, 3, color=color, fill=True)

    def _draw_label(self, canvas_image, anchor, text):
        x, y = self._to_canvas(anchor)
        (tw, th), _ = cv2.getTextSize(text, cv2.FONT_HERSHEY_SIMPLEX, 0.5, 1)
        cv2.rectangle(canvas_image, (x + 8, y - th - 12), (x + tw + 16, y - 4), (0, 0, 0), -1)
        cv2.putText(canvas_image, text, (x + 12, y - 8),
                    cv2.FONT_HERSHEY_SIMPLEX, 0.5, LABEL_COLOR, 1, cv2.LINE_AA)
