"""LANA command line scripts."""
