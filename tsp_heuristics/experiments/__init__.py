"""Command-line solver and experiment harness"""
