"""k-eigenvalue solvers."""
