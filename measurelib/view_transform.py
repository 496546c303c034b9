"""
ViewTransform - zoom and pan between canvas (screen) and image coordinates.
"""


class ViewTransform:
    """
    Maps canvas coordinates to image pixel coordinates and back.

    The effective scale is base_scale (fit-to-canvas) times zoom_level. All
    measurement geometry lives in image coordinates, so pointer positions are
    passed through canvas_to_image_coords before they reach the session.
    """

    def __init__(self, zoom_step=1.2, min_zoom=0.1, max_zoom=10.0):
        self.zoom_step = zoom_step
        self.min_zoom = min_zoom
        self.max_zoom = max_zoom

        self.zoom_level = 1.0
        self.base_scale = 1.0
        self.pan_offset = [0.0, 0.0]

        # Drag state for panning
        self.panning = False
        self.drag_start = None

    @property
    def effective_scale(self):
        return self.base_scale * self.zoom_level

    def reset(self):
        """Reset zoom and pan to initial state"""
        self.zoom_level = 1.0
        self.pan_offset = [0.0, 0.0]

    def set_zoom(self, zoom_level, center_x=0.0, center_y=0.0):
        """
        Set the zoom level, keeping the canvas point (center_x, center_y)
        fixed over the same image point.
        """
        old_zoom = self.zoom_level
        self.zoom_level = min(max(float(zoom_level), self.min_zoom), self.max_zoom)

        ratio = self.zoom_level / old_zoom
        self.pan_offset[0] = center_x - (center_x - self.pan_offset[0]) * ratio
        self.pan_offset[1] = center_y - (center_y - self.pan_offset[1]) * ratio
        return self.zoom_level

    def zoom_in(self, center_x=0.0, center_y=0.0):
        return self.set_zoom(self.zoom_level * self.zoom_step, center_x, center_y)

    def zoom_out(self, center_x=0.0, center_y=0.0):
        return self.set_zoom(self.zoom_level / self.zoom_step, center_x, center_y)

    def get_zoom_percentage(self):
        return int(round(self.effective_scale * 100))

    def canvas_to_image_coords(self, canvas_x, canvas_y):
        """Convert canvas coordinates to image coordinates"""
        scale = self.effective_scale
        return ((canvas_x - self.pan_offset[0]) / scale,
                (canvas_y - self.pan_offset[1]) / scale)

    def image_to_canvas_coords(self, img_x, img_y):
        """Convert image coordinates to canvas coordinates"""
        scale = self.effective_scale
        return (img_x * scale + self.pan_offset[0],
                img_y * scale + self.pan_offset[1])

    def start_pan(self, x, y):
        self.panning = True
        self.drag_start = (x, y)

    def update_pan(self, x, y):
        """Move the view with the pointer. Returns True if panning."""
        if not (self.panning and self.drag_start):
            return False
        self.pan_offset[0] += x - self.drag_start[0]
        self.pan_offset[1] += y - self.drag_start[1]
        self.drag_start = (x, y)
        return True

    def end_pan(self):
        self.panning = False
        self.drag_start = None
