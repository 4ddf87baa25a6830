"""
Smoke tests for the Typer CLI using the bundled demo appointments.
"""

import pytest
from typer.testing import CliRunner

from salonslots.cli.app import app

runner = CliRunner()

CONFIG = """
business:
  timezone: Europe/Berlin
  appointment_buffer: 15
  working_hours:
    monday: {open: true, start: "09:00", end: "18:00"}
    sunday: {open: false}
services:
  - {id: gel-manicure, duration_minutes: 60}
staff:
  - {id: anna, services: [gel-manicure]}
  - {id: sofia, services: [gel-manicure]}
"""


@pytest.fixture
def config_file(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text(CONFIG)
    return str(path)


def test_slots_for_staff(config_file):
    result = runner.invoke(app, ["slots", "2026-11-02", "gel-manicure", "--staff", "anna", "--mock", "-c", config_file])

    assert result.exit_code == 0
    assert "16:45" in result.output
    assert "bookable" in result.output


def test_slots_on_closed_day(config_file):
    result = runner.invoke(app, ["slots", "2026-11-01", "gel-manicure", "-c", config_file])

    assert result.exit_code == 0
    assert "No slots" in result.output


def test_assign_skips_busy_staff(config_file):
    """Anna has a demo booking at 10:00; Sofia's 09:00 booking is cancelled."""
    result = runner.invoke(app, ["assign", "2026-11-02", "10:00", "gel-manicure", "--mock", "-c", config_file])

    assert result.exit_code == 0
    assert "sofia" in result.output


def test_book_prints_confirmation(config_file):
    result = runner.invoke(
        app,
        [
            "book", "2026-11-02", "12:00", "gel-manicure",
            "--name", "Lena Vogel", "--email", "lena@example.com",
            "--mock", "-c", config_file,
        ],
    )

    assert result.exit_code == 0
    assert "pending" in result.output


def test_hours_shows_closed_days(config_file):
    result = runner.invoke(app, ["hours", "--start", "2026-11-02", "-c", config_file])

    assert result.exit_code == 0
    assert "09:00 - 18:00" in result.output
    assert "closed" in result.output


def test_missing_config_exits_with_error(tmp_path):
    result = runner.invoke(app, ["slots", "2026-11-02", "gel-manicure", "-c", str(tmp_path / "nope.yaml")])

    assert result.exit_code == 1
    assert "Config file not found" in result.output
