"""In-memory size × color stock matrix for the product editor.

The matrix owns four pieces of state that must stay consistent while an
admin edits a product:

* ``selected_sizes`` / ``selected_colors``: the sizes and colors that apply;
* ``variants``: stock-bearing ``{size, color, stock, ...}`` records, always a
  subset of ``selected_sizes × selected_colors``;
* ``color_images``: pending uploads per color, plus ``existing_images`` (URLs
  already stored) when editing a saved product.

Stock cells written with 0 are removed instead of being kept as explicit
zero records, so a variant saved elsewhere with ``stock: 0`` disappears the
next time it is edited here and saved.

Nothing in this module performs I/O.
"""
import logging

from app.services.validation import (
    MAX_IMAGE_SIZE,
    check_image_file,
    generate_sku,
    parse_float,
    parse_stock,
    validate_variants,
)

logger = logging.getLogger(__name__)

DEFAULT_IMAGE_COLOR = "default"


class VariantMatrix:
    def __init__(self, max_image_size=MAX_IMAGE_SIZE):
        self.max_image_size = max_image_size
        self.selected_sizes = []
        self.selected_colors = []
        self.variants = []
        self.color_images = {}  # color -> [ImageFile]
        self.existing_images = {}  # color -> [url]
        self.images_to_remove = []

    # ------------------------------------------------------------------
    # Hydration
    # ------------------------------------------------------------------

    def hydrate(self, variants, images=()):
        """Load the state of a saved product.

        ``variants`` are dicts with at least ``size``/``color``/``stock``;
        ``images`` are dicts with ``url`` and ``color``.
        """
        self.selected_sizes = []
        self.selected_colors = []
        self.variants = []
        self.color_images = {}
        self.existing_images = {}
        self.images_to_remove = []

        for variant in variants:
            size, color = variant["size"], variant["color"]
            if size not in self.selected_sizes:
                self.selected_sizes.append(size)
            if color not in self.selected_colors:
                self.selected_colors.append(color)
            self.variants.append(dict(variant))

        for image in images:
            color = image.get("color") or DEFAULT_IMAGE_COLOR
            self.existing_images.setdefault(color, []).append(image["url"])
            if color != DEFAULT_IMAGE_COLOR and color not in self.selected_colors:
                self.selected_colors.append(color)

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def find(self, size, color):
        for index, variant in enumerate(self.variants):
            if variant["size"] == size and variant["color"] == color:
                return index
        return -1

    def _ensure(self, size, color):
        if self.find(size, color) < 0:
            self.variants.append({"size": size, "color": color, "stock": 0})

    def toggle_size(self, size):
        if size in self.selected_sizes:
            self.selected_sizes.remove(size)
            self.variants = [v for v in self.variants if v["size"] != size]
            return False

        self.selected_sizes.append(size)
        for color in self.selected_colors:
            self._ensure(size, color)
        return True

    def toggle_color(self, color):
        """Select or deselect ``color``.

        Deselecting drops the color's variants and its whole image bucket;
        stored images of that color are queued for removal. Re-selecting
        starts with an empty bucket.
        """
        if color in self.selected_colors:
            self.selected_colors.remove(color)
            self.variants = [v for v in self.variants if v["color"] != color]
            self.color_images.pop(color, None)
            for url in self.existing_images.pop(color, []):
                if url not in self.images_to_remove:
                    self.images_to_remove.append(url)
            return False

        self.selected_colors.append(color)
        for size in self.selected_sizes:
            self._ensure(size, color)
        return True

    def set_stock(self, size, color, raw_value):
        if size not in self.selected_sizes or color not in self.selected_colors:
            logger.debug("Ignoring stock for unselected cell %s/%s", size, color)
            return

        stock = parse_stock(raw_value)
        index = self.find(size, color)
        if stock == 0:
            if index >= 0:
                del self.variants[index]
            return

        if index >= 0:
            self.variants[index] = {**self.variants[index], "stock": stock}
        else:
            self.variants.append({"size": size, "color": color, "stock": stock})

    def set_weight(self, size, color, raw_value):
        """Attach a weight to an existing variant; blank input clears it."""
        index = self.find(size, color)
        if index < 0:
            return
        self.variants[index] = {**self.variants[index], "weight": parse_float(raw_value)}

    def bulk_set_stock(self, value):
        """Set every selected cell to ``value``; 0 clears all variants.

        This overwrites every per-cell value entered so far and there is no
        undo.
        """
        stock = parse_stock(value)
        if stock == 0:
            self.variants = []
            return
        self.variants = [
            {"size": size, "color": color, "stock": stock}
            for size in self.selected_sizes
            for color in self.selected_colors
        ]

    def add_images(self, color, files):
        """Queue ``files`` for upload under ``color``.

        Returns a list of ``(filename, reason)`` for every rejected file.
        """
        accepted = []
        rejected = []
        for file in files:
            reason = check_image_file(file, self.max_image_size)
            if reason:
                rejected.append((file.filename, reason))
            else:
                accepted.append(file)

        if accepted:
            self.color_images.setdefault(color, []).extend(accepted)
        return rejected

    def remove_new_image(self, color, index):
        bucket = self.color_images.get(color, [])
        if 0 <= index < len(bucket):
            del bucket[index]

    def remove_existing_image(self, color, url):
        bucket = self.existing_images.get(color, [])
        if url in bucket:
            bucket.remove(url)
            self.images_to_remove.append(url)

    def reset(self):
        self.hydrate([])

    # ------------------------------------------------------------------
    # Read side
    # ------------------------------------------------------------------

    @property
    def total_stock(self):
        return sum(parse_stock(v.get("stock")) for v in self.variants)

    def stock_of(self, size, color):
        index = self.find(size, color)
        return self.variants[index]["stock"] if index >= 0 else 0

    def validate(self):
        """Return the error map for variants and pending images."""
        _, errors = validate_variants(self.variants)
        for color, files in self.color_images.items():
            reasons = [check_image_file(f, self.max_image_size) for f in files]
            reasons = [r for r in reasons if r]
            if reasons:
                errors[f"images.{color}"] = "; ".join(reasons)
        return errors

    def export_variants(self, product_name):
        """Variants as they are persisted, with stock/weight coerced."""
        exported = []
        for variant in self.variants:
            record = dict(variant)
            record["stock"] = parse_stock(variant.get("stock"))
            record["weight"] = parse_float(variant.get("weight"))
            if "price" in variant:
                record["price"] = parse_float(variant.get("price"))
            record["sku"] = variant.get("sku") or generate_sku(
                product_name, variant["size"], variant["color"]
            )
            exported.append(record)
        return exported

    def pending_uploads(self):
        """Flatten pending files into ``(files, colors)`` parallel lists."""
        files = []
        colors = []
        for color, bucket in self.color_images.items():
            for file in bucket:
                files.append(file)
                colors.append(color)
        return files, colors
