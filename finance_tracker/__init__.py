"""Command line entry point for the finance tracker."""
