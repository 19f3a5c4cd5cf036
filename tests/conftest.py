"""Shared test fixtures for cuke-engine."""

import json
from pathlib import Path

import pytest


@pytest.fixture
def sample_feature_content() -> str:
    """Return a feature with a background and one scenario."""
    return """\
Feature: User signs up for event

Background:
  Given a logged in user

Scenario: User joins an event
  Given an event titled "Tech Gathering"
  When I visit "/"
  Then I should see the event
  When I click "join" on the first event
  Then I should see "joined event"
"""


@pytest.fixture
def outline_feature_content() -> str:
    """Return a feature whose outline has two tagged Examples blocks."""
    return """\
@shopping
Feature: Cucumber basket

  @outline-tag
  Scenario Outline: Eating cucumbers
    Given there are <start> cucumbers
    When I eat <eat> cucumbers
    Then I should have <left> cucumbers

    @smoke
    Examples: small
      | start | eat | left |
      | 12    | 5   | 7    |

    @regression
    Examples:
      | start | eat | left |
      | 20    | 5   | 15   |
      | 5     | 5   | 0    |
"""


@pytest.fixture
def sample_feature_file(tmp_path: Path, sample_feature_content: str) -> Path:
    """Write sample feature content to a file and return the path."""
    features_dir = tmp_path / "features"
    features_dir.mkdir(exist_ok=True)
    feature_file = features_dir / "signup.feature"
    feature_file.write_text(sample_feature_content)
    return feature_file


@pytest.fixture
def initialized_project(tmp_path: Path) -> Path:
    """Create a temporary project with cuke-engine initialized."""
    config_dir = tmp_path / ".cuke-engine"
    config_dir.mkdir()
    features_dir = tmp_path / "features"
    features_dir.mkdir()

    config = {
        "version": "0.1.0",
        "features_dir": "features",
        "feature_glob": "*.feature",
        "steps_file": "features/steps.yaml",
    }
    (config_dir / "config.json").write_text(json.dumps(config, indent=2))
    return tmp_path
