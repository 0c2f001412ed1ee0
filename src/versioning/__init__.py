"""Package locators, Maven coordinates and version translation."""
