"""Heuristic solvers for the symmetric travelling salesman problem on distance matrices"""
