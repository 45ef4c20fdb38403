"""Flask REST API for the finance tracker."""
