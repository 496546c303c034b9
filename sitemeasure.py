"""
SiteMeasure - Interactive on-canvas measuring tool
Load a site photo or plan (or use a blank sheet), calibrate the scale against
a known length, then click point chains to measure lengths and areas.
Features: Zoom, Pan, Undo/Redo, Eraser, Freehand pencil, JSON sessions
"""

import argparse
import logging
import os
import tkinter as tk
from tkinter import filedialog, messagebox, simpledialog, ttk

import cv3  # For basic image I/O
import numpy as np
from PIL import Image
from pillow_heif import register_heif_opener  # For HEIC file support

from measurelib import (
    InteractionController,
    InvalidSessionData,
    MeasureConfig,
    MeasurementKind,
    MeasurementSession,
    Tool,
)
from measurelib.geometry import polygon_perimeter, to_real_units
from measurelib.image_canvas import ImageCanvas
from measurelib.pricing import SERVICE_RATES, estimate_total, fence_materials

# Register HEIF opener with Pillow to enable HEIC support
register_heif_opener()

logger = logging.getLogger("sitemeasure")

UNITS = ["ft", "in", "yd", "m", "cm", "mm"]


class SiteMeasureGUI:
    def __init__(self, root, config):
        self.root = root
        self.root.title("SiteMeasure")
        self.config = config

        # State variables
        self.image = None
        self.session = MeasurementSession(config=config)
        self.controller = InteractionController(self.session)
        self.session.subscribe(self.on_session_changed)

        self.canvas_width = 800
        self.canvas_height = 600
        self.tool_var = tk.StringVar(value=Tool.MEASURE.value)
        self.service_var = tk.StringVar(value="")
        self.unit_var = tk.StringVar(value=self.session.unit)

        self.setup_ui()
        self.refresh()

    def setup_ui(self):
        screen_width = self.root.winfo_screenwidth()
        screen_height = self.root.winfo_screenheight()
        self.canvas_width = max(400, int(screen_width * 0.6))
        self.canvas_height = max(300, int(screen_height * 0.7))

        # Menu Bar
        menubar = tk.Menu(self.root)
        self.root.config(menu=menubar)

        file_menu = tk.Menu(menubar, tearoff=0)
        menubar.add_cascade(label="File", menu=file_menu)
        file_menu.add_command(label="Load Image...", command=self.load_image, accelerator="Ctrl+O")
        file_menu.add_command(label="Open Session...", command=self.open_session)
        file_menu.add_command(label="Save Session...", command=self.save_session, accelerator="Ctrl+S")
        file_menu.add_separator()
        file_menu.add_command(label="Exit", command=self.root.quit, accelerator="Alt+F4")

        edit_menu = tk.Menu(menubar, tearoff=0)
        menubar.add_cascade(label="Edit", menu=edit_menu)
        edit_menu.add_command(label="Undo Point", command=self.undo, accelerator="Ctrl+Z")
        edit_menu.add_command(label="Redo Point", command=self.redo, accelerator="Ctrl+Y")
        edit_menu.add_separator()
        edit_menu.add_command(label="Set Scale...", command=self.start_calibration)
        edit_menu.add_command(label="Rename Selected...", command=self.rename_selected)
        edit_menu.add_command(label="Clear All", command=self.clear_all)

        units_menu = tk.Menu(menubar, tearoff=0)
        menubar.add_cascade(label="Units", menu=units_menu)
        for unit in UNITS:
            units_menu.add_radiobutton(label=unit, value=unit, variable=self.unit_var,
                                       command=self.on_unit_changed)

        self.root.bind('<Control-o>', lambda e: self.load_image())
        self.root.bind('<Control-s>', lambda e: self.save_session())
        self.root.bind('<Control-z>', lambda e: self.undo())
        self.root.bind('<Control-y>', lambda e: self.redo())
        self.root.bind('<Return>', lambda e: self.finish())
        self.root.bind('<Escape>', lambda e: self.cancel())

        main = ttk.Frame(self.root)
        main.grid(row=0, column=0, sticky=(tk.W, tk.E, tk.N, tk.S))
        self.root.columnconfigure(0, weight=1)
        self.root.rowconfigure(0, weight=1)

        # Canvas
        canvas_frame = ttk.Frame(main)
        canvas_frame.grid(row=0, column=0, padx=5, pady=5, sticky=(tk.W, tk.E, tk.N, tk.S))
        main.columnconfigure(0, weight=1)
        main.rowconfigure(0, weight=1)

        self.canvas = tk.Canvas(canvas_frame, bg='gray', cursor="cross",
                                width=self.canvas_width, height=self.canvas_height,
                                highlightthickness=0)
        self.canvas.pack(fill=tk.BOTH, expand=True)
        self.image_canvas = ImageCanvas(self.canvas, self.canvas_width, self.canvas_height,
                                        self.controller.view)

        # Tool buttons overlay (upper left corner)
        tool_overlay = ttk.Frame(canvas_frame, relief=tk.RAISED, borderwidth=1)
        tool_overlay.place(relx=0.0, rely=0.0, x=5, y=5, anchor=tk.NW)
        for tool, text in ((Tool.MEASURE, "Measure"), (Tool.ERASE, "Erase"), (Tool.PENCIL, "Pencil")):
            ttk.Radiobutton(tool_overlay, text=text, value=tool.value, variable=self.tool_var,
                            command=self.on_tool_changed).pack(side=tk.LEFT, padx=2)
        ttk.Button(tool_overlay, text="Finish", command=self.finish, width=6).pack(side=tk.LEFT, padx=1)
        ttk.Button(tool_overlay, text="Scale", command=self.start_calibration, width=6).pack(side=tk.LEFT, padx=1)

        # Zoom controls overlay (upper right corner)
        zoom_overlay = ttk.Frame(canvas_frame, relief=tk.RAISED, borderwidth=1)
        zoom_overlay.place(relx=1.0, rely=0.0, x=-5, y=5, anchor=tk.NE)
        ttk.Button(zoom_overlay, text="+", command=self.zoom_in, width=3).pack(side=tk.LEFT, padx=1)
        ttk.Button(zoom_overlay, text="-", command=self.zoom_out, width=3).pack(side=tk.LEFT, padx=1)
        ttk.Button(zoom_overlay, text="Fit", command=self.zoom_fit, width=4).pack(side=tk.LEFT, padx=1)
        self.zoom_label = ttk.Label(zoom_overlay, text="100%", width=5)
        self.zoom_label.pack(side=tk.LEFT, padx=3)

        self.canvas.bind("<Button-1>", self.on_canvas_click)
        self.canvas.bind("<B1-Motion>", self.on_canvas_drag)
        self.canvas.bind("<ButtonRelease-1>", self.on_canvas_release)
        self.canvas.bind("<Motion>", self.on_canvas_motion)
        self.canvas.bind("<Button-3>", self.on_pan_start)
        self.canvas.bind("<B3-Motion>", self.on_pan_drag)
        self.canvas.bind("<ButtonRelease-3>", self.on_pan_end)
        self.canvas.bind("<MouseWheel>", self.on_mouse_wheel)
        self.canvas.bind("<Configure>", self.on_canvas_resize)

        # Measurement list
        side = ttk.Frame(main, padding="5")
        side.grid(row=0, column=1, sticky=(tk.N, tk.S))
        ttk.Label(side, text="Measurements").pack(anchor=tk.W)
        self.listbox = tk.Listbox(side, width=36, height=20)
        self.listbox.pack(fill=tk.BOTH, expand=True)
        ttk.Button(side, text="Delete Selected", command=self.delete_selected).pack(fill=tk.X, pady=(5, 0))
        self.total_label = ttk.Label(side, text="")
        self.total_label.pack(anchor=tk.W, pady=(5, 0))

        ttk.Label(side, text="Estimate service").pack(anchor=tk.W, pady=(10, 0))
        service_box = ttk.Combobox(side, textvariable=self.service_var, state="readonly",
                                   values=sorted(SERVICE_RATES))
        service_box.pack(fill=tk.X)
        service_box.bind("<<ComboboxSelected>>", lambda e: self.update_totals())
        self.estimate_label = ttk.Label(side, text="", wraplength=240)
        self.estimate_label.pack(anchor=tk.W)

        # Status Bar at bottom
        status_frame = ttk.Frame(self.root, relief=tk.SUNKEN, padding="2")
        status_frame.grid(row=1, column=0, sticky=(tk.W, tk.E))
        self.status_label = ttk.Label(status_frame, text="", anchor=tk.W)
        self.status_label.pack(fill=tk.X)

    # ------------------------------------------------------------------
    # Session and display

    def on_session_changed(self, measurements, scale):
        self.listbox.delete(0, tk.END)
        for m in measurements:
            text = f"{m.label}: {m.value:.2f} {m.unit}"
            if m.kind is MeasurementKind.AREA:
                perimeter = to_real_units(polygon_perimeter(m.points), scale)
                perimeter_text = self.session.converter.format_value(perimeter, scale.display_unit)
                text += f" (perimeter {perimeter_text})"
            self.listbox.insert(tk.END, text)
        self.update_totals()

    def update_totals(self):
        lengths = self.session.total_real_value(MeasurementKind.LINEAR)
        areas = self.session.total_real_value(MeasurementKind.AREA)
        converter = self.session.converter
        unit = self.session.scale.display_unit
        self.total_label.config(
            text=f"Length: {converter.format_value(lengths, unit)}   "
                 f"Area: {converter.format_value(areas, unit, MeasurementKind.AREA)}")

        service = self.service_var.get()
        if not service:
            self.estimate_label.config(text="")
        elif not self.session.scale.calibrated:
            self.estimate_label.config(text="Calibrate the scale to estimate costs")
        else:
            total, lines = estimate_total(self.session.measurements, service)
            text = f"{len(lines)} items, estimated ${total:,.2f}"
            if service == "fencing":
                posts = panels = 0
                for m, _ in lines:
                    materials = fence_materials(m.points, self.session.scale)
                    posts += materials.posts
                    panels += materials.panels
                text += f"\n{posts} posts, {panels} panels"
            self.estimate_label.config(text=text)

    def refresh(self):
        self.image_canvas.render(self.image, self.session)
        self.zoom_label.config(text=f"{self.controller.view.get_zoom_percentage()}%")
        status = self.controller.message or self.controller.status_message()
        if self.controller.uncalibrated:
            status += "  [uncalibrated: values in pixels]"
        self.status_label.config(text=status)
        self.controller.message = ""

    def load_image(self):
        file_path = filedialog.askopenfilename(
            title="Select Image",
            filetypes=[("Image files", "*.jpg *.jpeg *.png *.bmp *.heic *.heif"), ("All files", "*.*")]
        )
        if file_path:
            self.load_image_from_path(file_path)

    def load_image_from_path(self, file_path):
        """Load an image from the given file path"""
        if file_path.lower().endswith(('.heic', '.heif')):
            try:
                with Image.open(file_path) as pil_image:
                    image = np.array(pil_image.convert('RGB'))
            except OSError as e:
                self.controller.message = f"Error: Could not load HEIC image - {e}"
                self.refresh()
                return
        else:
            # cv3 loads images in RGB by default
            image = cv3.imread(file_path)
            if image is None:
                self.controller.message = "Error: Could not load image"
                self.refresh()
                return

        logger.info("Loaded %s (%dx%d)", file_path, image.shape[1], image.shape[0])
        self.image = image
        self.image_canvas.zoom_fit()
        self.controller.message = f"Loaded {os.path.basename(file_path)}. Set the scale, then click to measure."
        self.refresh()

    def open_session(self):
        file_path = filedialog.askopenfilename(title="Open Session", filetypes=[("Session", "*.json")])
        if file_path:
            self.load_session_from_path(file_path)

    def load_session_from_path(self, file_path):
        try:
            session = MeasurementSession.load(file_path, config=self.config)
        except (OSError, InvalidSessionData) as e:
            messagebox.showerror("Open Session", str(e))
            return
        self.session = session
        self.controller = InteractionController(session, view=self.controller.view)
        self.controller.set_tool(self.tool_var.get())
        session.subscribe(self.on_session_changed)
        self.unit_var.set(session.unit)
        self.on_session_changed(session.measurements, session.scale)
        self.controller.message = f"Opened {os.path.basename(file_path)}"
        self.refresh()

    def save_session(self):
        file_path = filedialog.asksaveasfilename(title="Save Session", defaultextension=".json",
                                                 filetypes=[("Session", "*.json")])
        if not file_path:
            return
        try:
            self.session.save(file_path)
        except OSError as e:
            messagebox.showerror("Save Session", str(e))
            return
        self.controller.message = f"Session saved to {file_path}"
        self.refresh()

    # ------------------------------------------------------------------
    # Commands

    def on_tool_changed(self):
        self.controller.set_tool(self.tool_var.get())
        self.canvas.config(cursor="circle" if self.controller.tool is Tool.ERASE else "cross")
        self.refresh()

    def start_calibration(self):
        length = simpledialog.askfloat(
            "Set Scale",
            f"Enter the real-world length of the reference line ({self.session.unit}):",
            parent=self.root)
        if length is None:
            return
        if self.controller.begin_calibration(length):
            self.canvas.config(cursor="crosshair")
        self.refresh()

    def finish(self):
        self.controller.finish()
        self.refresh()

    def cancel(self):
        self.controller.cancel()
        self.canvas.config(cursor="cross")
        self.refresh()

    def undo(self):
        self.controller.undo()
        self.refresh()

    def redo(self):
        self.controller.redo()
        self.refresh()

    def clear_all(self):
        if messagebox.askyesno("Clear All", "Remove all measurements?"):
            self.controller.clear_all()
            self.refresh()

    def delete_selected(self):
        selection = self.listbox.curselection()
        if not selection:
            return
        measurement = self.session.measurements[selection[0]]
        self.controller.delete(measurement.id)
        self.refresh()

    def rename_selected(self):
        selection = self.listbox.curselection()
        if not selection:
            return
        measurement = self.session.measurements[selection[0]]
        label = simpledialog.askstring("Rename", "New label:", initialvalue=measurement.label,
                                       parent=self.root)
        if label is None:
            return
        self.session.relabel(measurement.id, label.strip())
        self.refresh()

    def on_unit_changed(self):
        try:
            self.session.set_unit(self.unit_var.get())
        except ValueError as e:
            messagebox.showerror("Units", str(e))
            self.unit_var.set(self.session.unit)
            return
        self.controller.message = f"Units: {self.session.unit}"
        self.refresh()

    def zoom_in(self, center_x=None, center_y=None):
        if center_x is None:
            center_x, center_y = self.canvas_width / 2, self.canvas_height / 2
        self.controller.zoom_in(center_x, center_y)
        self.refresh()

    def zoom_out(self, center_x=None, center_y=None):
        if center_x is None:
            center_x, center_y = self.canvas_width / 2, self.canvas_height / 2
        self.controller.zoom_out(center_x, center_y)
        self.refresh()

    def zoom_fit(self):
        self.image_canvas.zoom_fit()
        self.refresh()

    # ------------------------------------------------------------------
    # Canvas events

    def on_canvas_click(self, event):
        result = self.controller.click(event.x, event.y, timestamp=event.time / 1000.0)
        self.controller.press(event.x, event.y)
        if result is not None and not self.session.calibrator.is_active():
            self.canvas.config(cursor="circle" if self.controller.tool is Tool.ERASE else "cross")
        self.refresh()

    def on_canvas_drag(self, event):
        self.controller.drag(event.x, event.y)
        if self.controller.tool is Tool.PENCIL:
            self.refresh()

    def on_canvas_release(self, event):
        if self.controller.release(event.x, event.y) is not None:
            self.refresh()

    def on_canvas_motion(self, event):
        self.controller.move(event.x, event.y)
        if len(self.session.chain):
            self.refresh()

    def on_pan_start(self, event):
        self.controller.view.start_pan(event.x, event.y)
        self.canvas.config(cursor="fleur")

    def on_pan_drag(self, event):
        if self.controller.view.update_pan(event.x, event.y):
            self.refresh()

    def on_pan_end(self, event):
        self.controller.view.end_pan()
        self.canvas.config(cursor="cross")

    def on_mouse_wheel(self, event):
        """Handle mouse wheel zoom centered on cursor"""
        if event.delta > 0:
            self.zoom_in(event.x, event.y)
        else:
            self.zoom_out(event.x, event.y)

    def on_canvas_resize(self, event):
        if event.width > 1 and event.height > 1:
            self.canvas_width = event.width
            self.canvas_height = event.height
            self.image_canvas.update_canvas_size(event.width, event.height)
            self.refresh()


def main():
    parser = argparse.ArgumentParser(description='SiteMeasure - Interactive on-canvas measuring tool')
    parser.add_argument('image', nargs='?', help='Image file to load on startup')
    parser.add_argument('--session', help='Session JSON file to open on startup')
    parser.add_argument('--unit', choices=UNITS,
                        help='Linear unit for the scale (default: derived from --service-unit, else ft)')
    parser.add_argument('--service-unit', dest='service_unit',
                        help='Unit the job is priced in, e.g. "sqft" for area or "linear ft" (default: ft)')
    parser.add_argument('--double-click-ms', dest='double_click_ms', type=float,
                        help='Double-click window that finishes a measurement (default: 300)')
    parser.add_argument('--erase-radius', dest='erase_radius_px', type=float,
                        help='Eraser radius in image pixels (default: 10)')
    parser.add_argument('--log-level', default='WARNING',
                        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'],
                        help='Logging level (default: WARNING)')
    args = parser.parse_args()

    logging.basicConfig(level=getattr(logging, args.log_level),
                        format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    try:
        config = MeasureConfig.from_args(args)
    except ValueError as e:
        parser.error(str(e))

    root = tk.Tk()
    app = SiteMeasureGUI(root, config)

    # Ensure UI is fully initialized before loading files
    root.update_idletasks()
    if args.session:
        app.load_session_from_path(args.session)
    if args.image:
        app.load_image_from_path(args.image)

    root.mainloop()


if __name__ == "__main__":
    main()
