"""Tests for the size × color stock matrix."""
import itertools
import random

from app.services.image_service import ImageFile
from app.services.variant_matrix import VariantMatrix

MB = 1024 * 1024


def _jpeg(name="tee.jpg", size=2 * MB):
    return ImageFile(name, "image/jpeg", b"\xff" * size)


def _cells(matrix):
    return {(v["size"], v["color"]) for v in matrix.variants}


def _assert_within_selection(matrix):
    allowed = set(itertools.product(matrix.selected_sizes, matrix.selected_colors))
    assert _cells(matrix) <= allowed


def test_toggle_sequences_keep_variants_within_selection():
    rng = random.Random(1234)
    sizes = ["XS", "S", "M", "L"]
    colors = ["Red", "Blue", "Black"]
    matrix = VariantMatrix()
    for _ in range(300):
        if rng.random() < 0.5:
            matrix.toggle_size(rng.choice(sizes))
        else:
            matrix.toggle_color(rng.choice(colors))
        if rng.random() < 0.3 and matrix.selected_sizes and matrix.selected_colors:
            matrix.set_stock(
                rng.choice(matrix.selected_sizes),
                rng.choice(matrix.selected_colors),
                str(rng.randint(0, 9)),
            )
        _assert_within_selection(matrix)


def test_toggle_size_on_creates_zero_stock_cells():
    matrix = VariantMatrix()
    matrix.toggle_color("Red")
    matrix.toggle_color("Blue")
    assert matrix.variants == []

    assert matrix.toggle_size("M") is True
    assert _cells(matrix) == {("M", "Red"), ("M", "Blue")}
    assert all(v["stock"] == 0 for v in matrix.variants)


def test_toggle_size_off_removes_only_that_size():
    matrix = VariantMatrix()
    matrix.toggle_size("S")
    matrix.toggle_size("M")
    matrix.toggle_color("Red")
    matrix.set_stock("S", "Red", "4")
    matrix.set_stock("M", "Red", "6")
    matrix.add_images("Red", [_jpeg()])

    assert matrix.toggle_size("S") is False
    assert _cells(matrix) == {("M", "Red")}
    assert matrix.stock_of("M", "Red") == 6
    assert len(matrix.color_images["Red"]) == 1


def test_toggle_size_on_keeps_existing_stock():
    matrix = VariantMatrix()
    matrix.toggle_size("S")
    matrix.toggle_color("Red")
    matrix.set_stock("S", "Red", "5")
    matrix.toggle_size("M")

    assert matrix.stock_of("S", "Red") == 5
    assert matrix.stock_of("M", "Red") == 0


def test_deselecting_color_empties_its_image_bucket():
    matrix = VariantMatrix()
    matrix.toggle_size("M")
    matrix.toggle_color("Red")
    matrix.add_images("Red", [_jpeg("a.jpg"), _jpeg("b.jpg")])
    assert len(matrix.color_images["Red"]) == 2

    matrix.toggle_color("Red")
    assert "Red" not in matrix.color_images
    assert _cells(matrix) == set()

    matrix.toggle_color("Red")
    assert matrix.color_images.get("Red", []) == []
    assert matrix.pending_uploads() == ([], [])


def test_deselecting_color_queues_stored_images_for_removal():
    matrix = VariantMatrix()
    matrix.hydrate(
        [{"size": "M", "color": "Red", "stock": 3}],
        [
            {"url": "https://cdn/x/red-1.jpg", "color": "Red"},
            {"url": "https://cdn/x/any.jpg", "color": "default"},
        ],
    )
    matrix.toggle_color("Red")

    assert matrix.images_to_remove == ["https://cdn/x/red-1.jpg"]
    assert matrix.existing_images == {"default": ["https://cdn/x/any.jpg"]}


def test_set_stock_zero_removes_variant():
    matrix = VariantMatrix()
    matrix.toggle_size("S")
    matrix.toggle_color("Red")
    assert matrix.find("S", "Red") == 0

    matrix.set_stock("S", "Red", "0")
    assert matrix.find("S", "Red") == -1

    matrix.set_stock("S", "Red", "7")
    assert matrix.stock_of("S", "Red") == 7
    matrix.set_stock("S", "Red", "0")
    matrix.set_stock("S", "Red", "0")
    assert matrix.find("S", "Red") == -1


def test_set_stock_coerces_bad_input_to_zero():
    matrix = VariantMatrix()
    matrix.toggle_size("S")
    matrix.toggle_color("Red")
    matrix.set_stock("S", "Red", "5")

    for raw in ("-3", "abc", "", None):
        matrix.set_stock("S", "Red", "5")
        matrix.set_stock("S", "Red", raw)
        assert matrix.find("S", "Red") == -1

    matrix.set_stock("S", "Red", "12 pcs")
    assert matrix.stock_of("S", "Red") == 12


def test_set_stock_preserves_other_fields():
    matrix = VariantMatrix()
    matrix.toggle_size("S")
    matrix.toggle_color("Red")
    matrix.set_stock("S", "Red", "2")
    matrix.set_weight("S", "Red", "0.25")
    matrix.set_stock("S", "Red", "9")

    variant = matrix.variants[matrix.find("S", "Red")]
    assert variant["stock"] == 9
    assert variant["weight"] == 0.25


def test_set_stock_for_unselected_cell_is_ignored():
    matrix = VariantMatrix()
    matrix.toggle_size("S")
    matrix.toggle_color("Red")
    matrix.set_stock("XL", "Red", "5")
    matrix.set_stock("S", "Green", "5")

    assert _cells(matrix) == {("S", "Red")}


def test_bulk_set_stock_fills_every_cell():
    matrix = VariantMatrix()
    for size in ("S", "M"):
        matrix.toggle_size(size)
    for color in ("Red", "Blue"):
        matrix.toggle_color(color)
    matrix.set_stock("S", "Red", "3")

    matrix.bulk_set_stock(10)
    assert len(matrix.variants) == 4
    assert all(v["stock"] == 10 for v in matrix.variants)
    assert matrix.total_stock == 40


def test_bulk_set_stock_zero_clears_everything():
    matrix = VariantMatrix()
    matrix.toggle_size("S")
    matrix.toggle_color("Red")
    matrix.bulk_set_stock("8")
    assert matrix.total_stock == 8

    matrix.bulk_set_stock("0")
    assert matrix.variants == []
    assert matrix.selected_sizes == ["S"]


def test_add_images_filters_type_and_size():
    matrix = VariantMatrix()
    matrix.toggle_color("Red")
    good = _jpeg("front.jpg", 2 * MB)
    not_image = ImageFile("pattern.gif", "application/octet-stream", b"GIF89a")
    too_big = _jpeg("huge.jpg", 6 * MB)

    rejected = matrix.add_images("Red", [good, not_image, too_big])

    assert matrix.color_images["Red"] == [good]
    assert [name for name, _ in rejected] == ["pattern.gif", "huge.jpg"]
    reasons = [reason for _, reason in rejected]
    assert reasons[0] != reasons[1]
    assert "not a valid image" in reasons[0]
    assert "too large" in reasons[1]


def test_add_images_accepts_exact_limit_and_duplicates():
    matrix = VariantMatrix()
    exact = _jpeg("edge.jpg", 5 * MB)
    assert matrix.add_images("Blue", [exact, exact]) == []
    assert len(matrix.color_images["Blue"]) == 2
    assert matrix.add_images("Blue", [_jpeg("over.jpg", 5 * MB + 1)])


def test_pending_uploads_pairs_files_with_colors():
    matrix = VariantMatrix()
    red_1, red_2, blue = _jpeg("r1.jpg"), _jpeg("r2.jpg"), _jpeg("b.jpg")
    matrix.add_images("Red", [red_1, red_2])
    matrix.add_images("Blue", [blue])

    files, colors = matrix.pending_uploads()
    assert files == [red_1, red_2, blue]
    assert colors == ["Red", "Red", "Blue"]


def test_validate_reports_duplicate_cells():
    matrix = VariantMatrix()
    matrix.toggle_size("M")
    matrix.toggle_color("Red")
    matrix.set_stock("M", "Red", "4")
    matrix.variants.append({"size": "M", "color": "Red", "stock": 2})

    errors = matrix.validate()
    assert "duplicate_1" in errors


def test_validate_reports_bad_pending_images_per_color():
    matrix = VariantMatrix(max_image_size=MB)
    matrix.color_images["Red"] = [
        ImageFile("a.txt", "text/plain", b"x"),
        ImageFile("b.jpg", "image/jpeg", b"x" * (2 * MB)),
    ]
    errors = matrix.validate()
    assert "a.txt" in errors["images.Red"]
    assert "b.jpg" in errors["images.Red"]


def test_empty_matrix_is_valid():
    assert VariantMatrix().validate() == {}


def test_hydrate_selects_sizes_and_colors_from_variants():
    matrix = VariantMatrix()
    matrix.hydrate(
        [
            {"size": "S", "color": "Red", "stock": 1, "weight": 0.2, "sku": "TEE-S-RE-0001"},
            {"size": "M", "color": "Blue", "stock": 0},
        ],
        [{"url": "https://cdn/g.jpg", "color": "Green"}],
    )
    assert matrix.selected_sizes == ["S", "M"]
    assert matrix.selected_colors == ["Red", "Blue", "Green"]
    assert matrix.total_stock == 1
    assert matrix.existing_images["Green"] == ["https://cdn/g.jpg"]


def test_export_variants_coerces_and_fills_sku():
    matrix = VariantMatrix()
    matrix.variants = [
        {"size": "S", "color": "Red", "stock": "3", "weight": "0.5"},
        {"size": "M", "color": "Red", "stock": 2, "weight": "", "sku": "KEEP-ME"},
    ]
    exported = matrix.export_variants("Tee")

    assert exported[0]["stock"] == 3
    assert exported[0]["weight"] == 0.5
    assert exported[0]["sku"].startswith("TEE-S-RE-")
    assert exported[1]["weight"] is None
    assert exported[1]["sku"] == "KEEP-ME"


def test_remove_images():
    matrix = VariantMatrix()
    matrix.hydrate([], [{"url": "https://cdn/old.jpg", "color": "default"}])
    matrix.add_images("default", [_jpeg("a.jpg"), _jpeg("b.jpg")])

    matrix.remove_new_image("default", 0)
    matrix.remove_new_image("default", 5)
    matrix.remove_existing_image("default", "https://cdn/old.jpg")

    assert [f.filename for f in matrix.color_images["default"]] == ["b.jpg"]
    assert matrix.images_to_remove == ["https://cdn/old.jpg"]
