"""Element library: small matrices, quadrature, shape functions, kernels."""
