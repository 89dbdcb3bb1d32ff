"""Tests for report settings."""

import pytest

from appointment_report.exceptions import ReportError
from appointment_report.settings import FontSpec, ReportSettings, load_settings


class TestReportSettings:
    """Test defaults of the clinic report."""

    def test_page_geometry(self):
        page = ReportSettings().page

        assert page.format == "A4"
        assert page.content_top == 110
        assert page.page_bottom == 750
        assert page.table_header_height == 25

    def test_column_widths(self):
        columns = ReportSettings().columns

        assert columns.patient_width == 110
        assert columns.clinician_width == 90
        assert columns.detail_col1_width == 230
        assert columns.detail_col2_width == 180

    def test_core_fonts(self):
        assert FontSpec().is_core
        assert ReportSettings().detail_font.size == 8


class TestLoadSettings:
    """Test loading overrides from YAML."""

    def test_none_returns_defaults(self):
        assert load_settings(None) == ReportSettings()

    def test_partial_overrides(self, tmp_path):
        path = tmp_path / "settings.yaml"
        path.write_text("clinic_name: Clínica Norte\npage:\n  page_bottom: 700\n", encoding="utf-8")

        settings = load_settings(path)

        assert settings.clinic_name == "Clínica Norte"
        assert settings.page.page_bottom == 700
        assert settings.page.content_top == 110

    def test_empty_file(self, tmp_path):
        path = tmp_path / "settings.yaml"
        path.write_text("", encoding="utf-8")
        assert load_settings(path) == ReportSettings()

    @pytest.mark.parametrize("content", [
        "page: {page_bottom: abc}\n",
        "clinic_name: [unclosed\n",
        "- just\n- a list\n",
    ])
    def test_invalid_files(self, tmp_path, content):
        path = tmp_path / "settings.yaml"
        path.write_text(content, encoding="utf-8")

        with pytest.raises(ReportError, match="Invalid settings file"):
            load_settings(path)

    def test_missing_file(self, tmp_path):
        with pytest.raises(ReportError):
            load_settings(tmp_path / "missing.yaml")
