import pytest

import q_minus_n_vectors


@pytest.fixture(scope="session")
def vectors_by_curve():
    """The four boundary vectors for each configured curve."""
    return {
        curve_name: q_minus_n_vectors.boundary_case_vectors(curve_name, r_seed, offset)
        for curve_name, r_seed, offset in q_minus_n_vectors.CURVE_CASES
    }


@pytest.fixture(scope="session")
def corpus():
    return q_minus_n_vectors.generate_corpus()
