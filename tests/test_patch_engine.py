import re

import pytest

import sft_steam_toasts as sft
from conftest import CSS_CHUNK, JS_CHUNK


def test_required_values_round_half_up():
    values = sft.required_values(1.5)
    assert values.height1 == 105
    assert values.width == 425  # 424.5, not banker's 424
    assert sft.required_values(1.8).width == 509  # 509.4


def test_required_values_reset_keeps_bare_class():
    values = sft.required_values(1)
    assert values == sft.ORIGINAL_VALUES
    assert "lovely-custom-toasts" not in values.dom_class


def test_format_scale():
    assert sft._format_scale(2) == "2"
    assert sft._format_scale(2.0) == "2"
    assert sft._format_scale(1.5) == "1.5"
    assert sft._format_scale(1.25) == "1.25"


def test_backup_is_byte_identical_sibling(js_path):
    record = sft.backup_file(js_path)
    assert record.backup.parent == js_path.parent
    assert re.fullmatch(
        r"chunk~2dcc5aaf7\.js\.\d{4}-\d{2}-\d{2}_\d{2}-\d{2}-\d{2}-\d{6}Z\.backup",
        record.backup.name,
    )
    assert record.backup.read_bytes() == js_path.read_bytes()
    assert record.original == js_path


def test_backup_missing_source_raises(tmp_path):
    with pytest.raises(OSError):
        sft.backup_file(tmp_path / "missing.js")


def test_patch_script_scales_values(js_path):
    values = sft.patch_script(js_path, 2)
    assert values.width == 566
    assert values.height1 == 140
    assert values.height2 == 180
    assert values.dom_class == "zXrpABNQHpWKgSzqnGlL lovely-custom-toasts"

    text = js_path.read_text(encoding="utf-8")
    assert "q=566;var Q;function" in text
    assert ";const Oe=140,Ge=180;function Pe" in text
    assert sft.read_script_values(js_path) == values


def test_patch_script_leaves_surrounding_text(js_path):
    sft.patch_script(js_path, 1.5)
    text = js_path.read_text(encoding="utf-8")
    expected = (
        JS_CHUNK.replace("q=283", "q=425")
        .replace("Oe=70,Ge=90", "Oe=105,Ge=135")
        .replace(
            '"zXrpABNQHpWKgSzqnGlL"', '"zXrpABNQHpWKgSzqnGlL lovely-custom-toasts"'
        )
    )
    assert text == expected


def test_patch_script_reset_is_true_reset_and_idempotent(js_path):
    sft.patch_script(js_path, 1.75)
    sft.patch_script(js_path, 1)
    first = js_path.read_bytes()
    assert first == JS_CHUNK.encode("utf-8")
    sft.patch_script(js_path, 1)
    assert js_path.read_bytes() == first


def test_patch_script_keeps_crlf(js_path):
    js_path.write_bytes(JS_CHUNK.replace("\n", "\r\n").encode("utf-8"))
    sft.patch_script(js_path, 2)
    assert js_path.read_bytes().endswith(b"}}]);\r\n")


def test_patch_script_missing_anchor_leaves_file(js_path):
    js_path.write_text(JS_CHUNK.replace(";const Oe=", ";let Oe="), encoding="utf-8")
    before = js_path.read_bytes()

    with pytest.raises(sft.AnchorNotFoundError) as exc:
        sft.patch_script(js_path, 2)

    assert exc.value.anchors == ["heights"]
    assert isinstance(exc.value, sft.PatchError)
    assert js_path.read_bytes() == before


def test_patch_script_verification_mismatch_keeps_written_file(js_path, monkeypatch):
    real_write = sft._write_text

    def corrupting_write(path, text):
        real_write(path, text.replace("Oe=140", "Oe=141"))

    monkeypatch.setattr(sft, "_write_text", corrupting_write)

    with pytest.raises(sft.VerificationError) as exc:
        sft.patch_script(js_path, 2)

    assert exc.value.expected["height1"] == 140
    assert exc.value.actual["height1"] == 141
    text = js_path.read_text(encoding="utf-8")
    assert "Oe=141,Ge=180" in text
    assert "q=566" in text


def test_patch_script_empty_file(js_path):
    js_path.write_text("", encoding="utf-8")
    with pytest.raises(OSError, match="Empty file data"):
        sft.patch_script(js_path, 2)


@pytest.mark.parametrize("scale", [1, 1.1, 1.5, 2, 2.35, 3])
def test_patch_script_round_trip(js_path, scale):
    assert sft.patch_script(js_path, scale) == sft.required_values(scale)
    assert sft.read_script_values(js_path) == sft.required_values(scale)


def test_patch_stylesheet_inserts_rule(css_path):
    rule = sft.patch_stylesheet(css_path, 2)
    assert rule == (
        "/* Custom */ .zXrpABNQHpWKgSzqnGlL.lovely-custom-toasts "
        "{ transform: scale(2); transform-origin: top left; }\n"
    )
    text = css_path.read_text(encoding="utf-8")
    assert text.count("/* Custom */") == 1
    assert text.endswith(rule + "/*# sourceMappingURL=chunk~2dcc5aaf7.css.map*/\n")
    assert sft.read_stylesheet_rule(css_path) == rule


def test_patch_stylesheet_replaces_previous_rule(css_path):
    sft.patch_stylesheet(css_path, 2)
    sft.patch_stylesheet(css_path, 1.5)
    text = css_path.read_text(encoding="utf-8")
    assert text.count("/* Custom */") == 1
    assert "scale(1.5)" in text
    assert "scale(2)" not in text


def test_patch_stylesheet_reset_is_idempotent(css_path):
    sft.patch_stylesheet(css_path, 2.5)
    assert sft.patch_stylesheet(css_path, 1) == ""
    first = css_path.read_bytes()
    assert first == CSS_CHUNK.encode("utf-8")
    sft.patch_stylesheet(css_path, 1)
    assert css_path.read_bytes() == first


def test_patch_stylesheet_missing_anchor_leaves_file(css_path):
    css_path.write_text(".a{color:red}\n", encoding="utf-8")
    with pytest.raises(sft.AnchorNotFoundError):
        sft.patch_stylesheet(css_path, 2)
    assert css_path.read_text(encoding="utf-8") == ".a{color:red}\n"


def test_patch_stylesheet_verification_mismatch(css_path, monkeypatch):
    real_write = sft._write_text
    monkeypatch.setattr(
        sft, "_write_text", lambda path, text: real_write(path, text.replace("scale(2)", "scale(3)"))
    )
    with pytest.raises(sft.VerificationError):
        sft.patch_stylesheet(css_path, 2)
    assert "scale(3)" in css_path.read_text(encoding="utf-8")


def test_end_to_end_custom_token(tmp_path):
    original = sft.ToastValues(width=283, height1=70, height2=90, dom_class="ABC")
    js = tmp_path / "chunk.js"
    css = tmp_path / "chunk.css"
    js.write_text(JS_CHUNK.replace("zXrpABNQHpWKgSzqnGlL", "ABC"), encoding="utf-8")
    css.write_text(CSS_CHUNK, encoding="utf-8")

    values = sft.patch_script(js, 2, original)
    rule = sft.patch_stylesheet(css, 2, original)

    assert (values.width, values.height1, values.height2) == (566, 140, 180)
    assert values.dom_class == "ABC lovely-custom-toasts"
    assert rule.startswith("/* Custom */ .ABC.lovely-custom-toasts {")
    assert "transform: scale(2);" in rule
    assert "transform-origin: top left;" in rule
