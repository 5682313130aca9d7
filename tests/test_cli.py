"""
Tests for the Typer command line interface.
"""

import json

import pytest
from typer.testing import CliRunner

from sensea import __version__
from sensea.cli.app import app

runner = CliRunner()


@pytest.fixture
def config_file(tmp_path):
    (tmp_path / "promos.json").write_text(
        json.dumps([
            {"id": "summer", "code": "SUMMER20", "discount_type": "percentage", "discount_value": 20},
            {"id": "old", "code": "OLD10", "discount_type": "fixed_amount", "discount_value": 10, "is_active": False},
        ]),
        encoding="utf-8",
    )
    (tmp_path / "bookings.json").write_text(
        json.dumps([{"id": "b1", "start": "2030-01-07 10:05", "blocked_minutes": 65}]),
        encoding="utf-8",
    )
    path = tmp_path / "config.yaml"
    path.write_text(
        "timezone: Europe/Paris\n"
        "bookings_file: bookings.json\n"
        "promos_file: promos.json\n"
        "promo_usage_file: usage.json\n",
        encoding="utf-8",
    )
    return str(path)


class TestCli:
    """Tests for the sensea commands."""

    def test_version(self):
        result = runner.invoke(app, ["version"])

        assert result.exit_code == 0
        assert __version__ in result.output

    def test_schedule(self, config_file):
        """Opening hours and session settings are listed."""
        result = runner.invoke(app, ["schedule", "-c", config_file])

        assert result.exit_code == 0
        assert "Fermé" in result.output
        assert "12:30 - 13:30" in result.output

    def test_slots_hides_booked(self, config_file):
        """Booked slots are left out unless --all is given."""
        free = runner.invoke(app, ["slots", "2030-01-07", "-c", config_file])
        every = runner.invoke(app, ["slots", "2030-01-07", "--all", "-c", config_file])

        assert free.exit_code == 0
        assert "10:05" not in free.output
        assert "13:30" in free.output
        assert "10:05" in every.output

    def test_slots_closed_day(self, config_file):
        result = runner.invoke(app, ["slots", "2030-01-10", "-c", config_file])

        assert result.exit_code == 0
        assert "Aucun créneau" in result.output

    def test_slots_invalid_date(self, config_file):
        result = runner.invoke(app, ["slots", "nope", "-c", config_file])

        assert result.exit_code == 1
        assert "Date invalide" in result.output

    def test_check_past_slot(self, config_file):
        """A slot in the past is refused with exit code 1."""
        result = runner.invoke(app, ["check", "2020-01-06 10:05", "-c", config_file])

        assert result.exit_code == 1
        assert "passé" in result.output

    def test_check_free_slot(self, config_file):
        result = runner.invoke(app, ["check", "2030-01-07 13:30", "-c", config_file])

        assert result.exit_code == 0
        assert "Créneau disponible" in result.output

    def test_quote_with_code(self, config_file):
        """20% off a regular session costs 36 EUR."""
        result = runner.invoke(app, ["quote", "--code", "summer20", "-c", config_file])

        assert result.exit_code == 0
        assert "45,00 €" in result.output
        assert "36,00 €" in result.output

    def test_quote_rejected_code(self, config_file):
        result = runner.invoke(app, ["quote", "--code", "OLD10", "-c", config_file])

        assert result.exit_code == 1
        assert "plus actif" in result.output

    def test_quote_discovery_without_promo(self, config_file):
        result = runner.invoke(app, ["quote", "--type", "discovery", "-c", config_file])

        assert result.exit_code == 0
        assert "55,00 €" in result.output

    def test_sample_day_output(self, config_file, tmp_path):
        """Sample bookings can be written to a JSON file."""
        output = tmp_path / "sample.json"

        result = runner.invoke(
            app, ["sample-day", "2030-01-07", "--seed", "3", "--output", str(output), "-c", config_file]
        )

        assert result.exit_code == 0
        data = json.loads(output.read_text(encoding="utf-8"))
        assert 3 <= len(data) <= 6
        assert {entry["status"] for entry in data} == {"confirmed"}

    def test_new_code(self, config_file):
        result = runner.invoke(app, ["new-code", "--length", "10", "-c", config_file])

        assert result.exit_code == 0
        assert len(result.output.strip()) == 10

    def test_loyalty_progress(self, config_file):
        result = runner.invoke(app, ["loyalty", "3", "-c", config_file])

        assert result.exit_code == 0
        assert "3/9" in result.output
        assert "Encore 6" in result.output

    def test_loyalty_configured_requirement(self, tmp_path):
        """The configured session count decides when the card completes."""
        path = tmp_path / "config.yaml"
        path.write_text("loyalty_sessions_required: 3\n", encoding="utf-8")

        result = runner.invoke(app, ["loyalty", "3", "-c", str(path)])

        assert result.exit_code == 0
        assert "3/3" in result.output
        assert "Séance offerte disponible" in result.output

    def test_missing_config_file(self, tmp_path):
        result = runner.invoke(app, ["schedule", "-c", str(tmp_path / "missing.yaml")])

        assert result.exit_code == 1
        assert "Erreur" in result.output
