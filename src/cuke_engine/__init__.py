"""cuke-engine: Gherkin parsing and Cucumber Expression matching."""

__version__ = "0.1.0"
