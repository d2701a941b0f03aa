#!/usr/bin/env python
"""
Test Matrix arithmetic.

This script tests:
- Factories (zeros, random, from_list)
- Conventional product against explicit inner products
- Elementwise ops, transpose, scalar scaling, map
- ShapeMismatchError on every mismatched operation
- Values are never mutated in place and never share buffers with callers

Usage:
    python tests/test_matrix.py
"""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

import numpy as np
from mlpnet.core.errors import ShapeMismatchError
from mlpnet.core.matrix import Matrix
from mlpnet.core.network import Network


def test_factories():
    """Test zeros, random and from_list."""
    print("\n" + "=" * 60)
    print("Test 1: Factories")
    print("=" * 60)

    z = Matrix.zeros(3, 4)
    assert z.shape == (3, 4)
    assert z.rows == 3 and z.cols == 4
    assert np.all(z.data == 0.0)
    print("✓ zeros(3, 4) is all zero")

    r = Matrix.random(50, 40, np.random.default_rng(0))
    assert r.shape == (50, 40)
    assert r.data.dtype == np.float64
    assert r.data.min() >= -1.0 and r.data.max() < 1.0
    print(f"✓ random entries in [-1, 1): min={r.data.min():.3f}, max={r.data.max():.3f}")

    row = Matrix.from_list([1, 2, 3])
    assert row.shape == (1, 3)
    m = Matrix.from_list([[1, 2], [3, 4], [5, 6]])
    assert m.shape == (3, 2)
    assert m.to_list() == [[1.0, 2.0], [3.0, 4.0], [5.0, 6.0]]
    print("✓ from_list builds 1xN rows and rows x cols matrices")

    try:
        Matrix.from_list([[1, 2], [3]])
        raise AssertionError("Ragged rows should be rejected")
    except ValueError as e:
        print(f"✓ Ragged rows rejected ({e})")

    print("\n✅ Factory tests passed!")


def test_multiply():
    """Test conventional product entries are row-column inner products."""
    print("\n" + "=" * 60)
    print("Test 2: Matrix Product")
    print("=" * 60)

    rng = np.random.default_rng(1)
    a = Matrix.random(4, 3, rng)
    b = Matrix.random(3, 5, rng)
    c = a.multiply(b)
    assert c.shape == (4, 5)

    for i in range(a.rows):
        for j in range(b.cols):
            expected = sum(a[i, k] * b[k, j] for k in range(a.cols))
            assert abs(c[i, j] - expected) < 1e-12, f"entry [{i}][{j}]: {c[i, j]} != {expected}"
    print("✓ Every entry equals the inner product of row i and column j")

    assert (a @ b) == c
    print("✓ @ operator matches multiply()")

    small = Matrix.from_list([[1, 2], [3, 4]]) @ Matrix.from_list([[5], [6]])
    assert small.to_list() == [[17.0], [39.0]]
    print("✓ Hand-computed 2x2 @ 2x1 product")

    try:
        a.multiply(Matrix.zeros(4, 2))
        raise AssertionError("Inner dimension mismatch should raise")
    except ShapeMismatchError as e:
        assert e.left_shape == (4, 3) and e.right_shape == (4, 2)
        print(f"✓ Inner dimension mismatch rejected: {e}")

    print("\n✅ Product tests passed!")


def test_elementwise_and_transpose():
    """Test add, subtract, elementwise multiply, scalar multiply, transpose."""
    print("\n" + "=" * 60)
    print("Test 3: Elementwise Ops and Transpose")
    print("=" * 60)

    a = Matrix.from_list([[1, 2, 3], [4, 5, 6]])
    b = Matrix.from_list([[6, 5, 4], [3, 2, 1]])

    assert (a + b).to_list() == [[7, 7, 7], [7, 7, 7]]
    assert (a - b).to_list() == [[-5, -3, -1], [1, 3, 5]]
    assert a.elementwise_multiply(b).to_list() == [[6, 10, 12], [12, 10, 6]]
    assert a.scalar_multiply(0.5).to_list() == [[0.5, 1, 1.5], [2, 2.5, 3]]
    assert (a * 2.0) == (2.0 * a) == a.scalar_multiply(2.0)
    print("✓ add / subtract / elementwise / scalar results")

    t = a.transpose()
    assert t.shape == (3, 2)
    assert t.to_list() == [[1, 4], [2, 5], [3, 6]]
    assert t.transpose() == a
    r = Matrix.random(7, 3, np.random.default_rng(2))
    assert r.transpose().transpose() == r
    print("✓ transpose(transpose(A)) == A")

    mismatched = Matrix.zeros(3, 2)
    for name, op in [('add', a.add), ('subtract', a.subtract),
                     ('elementwise_multiply', a.elementwise_multiply)]:
        try:
            op(mismatched)
            raise AssertionError(f"{name} on mismatched shapes should raise")
        except ShapeMismatchError as e:
            print(f"✓ {name} rejects 2x3 vs 3x2: {e}")

    print("\n✅ Elementwise tests passed!")


def test_map():
    """Test map is shape-preserving and entrywise."""
    print("\n" + "=" * 60)
    print("Test 4: Map")
    print("=" * 60)

    a = Matrix.random(5, 4, np.random.default_rng(3))
    f = lambda x: x * x - 3.0 * x + 1.0

    mapped = a.map(f)
    assert mapped.shape == a.shape
    for i in range(a.rows):
        for j in range(a.cols):
            assert mapped[i, j] == f(a[i, j])
    print("✓ map(A, f)[i][j] == f(A[i][j])")

    vectorized = a.map(np.tanh, vectorized=True)
    assert np.allclose(vectorized.data, a.map(lambda x: float(np.tanh(x))).data)
    print("✓ vectorized map agrees with per-entry map")

    print("\n✅ Map tests passed!")


def test_value_semantics():
    """Test operations return new matrices and leave operands untouched."""
    print("\n" + "=" * 60)
    print("Test 5: Value Semantics")
    print("=" * 60)

    a = Matrix.from_list([[1, 2], [3, 4]])
    b = Matrix.from_list([[1, 1], [1, 1]])
    before_a, before_b = a.copy(), b.copy()

    a + b; a - b; a @ b; a.elementwise_multiply(b); a * 3.0; a.transpose(); a.map(abs)
    assert a == before_a and b == before_b
    print("✓ Operands unchanged after every operation")

    row = a.row(1)
    assert row.tolist() == [3.0, 4.0]
    try:
        row[0] = 10.0
        raise AssertionError("Row view should be read-only")
    except ValueError:
        print("✓ row() returns a read-only view")
    assert a[1, 0] == 3.0

    column = a[:, 0]
    assert column.tolist() == [1.0, 3.0]
    try:
        column[0] = 10.0
        raise AssertionError("Sliced view should be read-only")
    except ValueError:
        print("✓ Slicing returns a read-only view")
    assert isinstance(a[np.int64(0), 1], float) and a[np.int64(0), 1] == 2.0

    print("\n✅ Value semantics tests passed!")


def test_no_shared_buffers():
    """Test a Matrix never aliases the array it was built from."""
    print("\n" + "=" * 60)
    print("Test 6: No Shared Buffers")
    print("=" * 60)

    arr = np.array([[1.0, 2.0], [3.0, 4.0]])
    m = Matrix(arr)
    arr[0, 0] = 99.0
    assert m[0, 0] == 1.0
    m.copy().data[1, 1] = -1.0
    assert m[1, 1] == 4.0
    t = m.transpose()
    t.data[0, 1] = 7.0
    assert m[1, 0] == 3.0
    print("✓ Constructor, copy() and transpose() own their buffers")

    # Caller-owned parameter arrays stay caller-owned
    weights = np.zeros((1, 1))
    net = Network([1, 1], weights=[weights], biases=[np.zeros((1, 1))])
    before = net.feed_forward([1.0])
    weights[0, 0] = 5.0
    assert np.array_equal(net.feed_forward([1.0]), before)
    assert before.tolist() == [0.5]
    print("✓ Mutating the array passed as weights does not change the network")

    print("\n✅ Buffer ownership tests passed!")


def run_all_tests():
    print("\n" + "=" * 70)
    print(" " * 22 + "MATRIX TEST SUITE")
    print("=" * 70)

    test_factories()
    test_multiply()
    test_elementwise_and_transpose()
    test_map()
    test_value_semantics()
    test_no_shared_buffers()

    print("\n" + "=" * 70)
    print(" " * 20 + "🎉 ALL TESTS PASSED! 🎉")
    print("=" * 70)


if __name__ == "__main__":
    run_all_tests()
