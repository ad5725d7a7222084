# gpgam/misc/dataframe.py
# --------------------------------------------------------------
# Author: Emmanuel Vazquez <emmanuel.vazquez@centralesupelec.fr>
# Copyright (c) 2022-2026, CentraleSupelec
# License: GPLv3 (see LICENSE)
# --------------------------------------------------------------
"""
A small labeled 2-D table of floats, used for posterior summaries.

Rows are parameter names (``b0``, ``f_k[3]``, ...), columns are statistics
(``mean``, ``sd``, ``r_hat``, ...).
"""
import math

import numpy as np


def ftos(x, fp=3):
    """Format a float compactly: fixed point in [0.01, 1000), else scientific."""
    x = float(x)
    if math.isnan(x):
        return "NaN"
    if x == float("inf"):
        return "+Inf"
    if x == float("-inf"):
        return "-Inf"
    if x == 0:
        return "0.0"
    abs_x = abs(x)
    if 0.1 <= abs_x < 1000:
        return f"{x:.{fp}f}"
    if 0.01 <= abs_x < 0.1:
        return f"{x:.{fp + 1}f}"
    exponent = int(np.floor(np.log10(abs_x)))
    coeff = x / 10**exponent
    return f"{coeff:.{fp}f}e{exponent}"


class DataFrame:
    """Labeled table.

    Parameters
    ----------
    data : array_like, shape (n_rows, n_cols)
    colnames : list of str
    rownames : list of str

    Indexing
    --------
    ``df["mean"]`` returns a column as a 1-D array, ``df["b0"]`` a row as a
    1-D array, ``df["b0", "mean"]`` a single value.
    """

    def __init__(self, data, colnames, rownames):
        self.data = np.atleast_2d(np.asarray(data, dtype=float))
        self.colnames = list(colnames)
        self.rownames = list(rownames)
        if self.data.shape != (len(self.rownames), len(self.colnames)):
            raise ValueError(
                f"data has shape {self.data.shape}, expected "
                f"({len(self.rownames)}, {len(self.colnames)})."
            )

    def __len__(self):
        return len(self.rownames)

    @property
    def shape(self):
        return self.data.shape

    def __getitem__(self, key):
        if isinstance(key, tuple):
            row_key, col_key = key
            return self.data[self.rownames.index(row_key), self.colnames.index(col_key)]
        if isinstance(key, str):
            if key in self.colnames:
                return self.data[:, self.colnames.index(key)]
            if key in self.rownames:
                return self.data[self.rownames.index(key), :]
            raise KeyError(f"Key '{key}' not found in row or column names")
        raise TypeError("Invalid key type. Must be a tuple or a string.")

    def __setitem__(self, key, value):
        if isinstance(key, tuple):
            row_key, col_key = key
            self.data[self.rownames.index(row_key), self.colnames.index(col_key)] = value
        elif isinstance(key, str):
            if key in self.colnames:
                self.data[:, self.colnames.index(key)] = value
            elif key in self.rownames:
                self.data[self.rownames.index(key), :] = value
            else:
                raise KeyError(f"Key '{key}' not found in row or column names")
        else:
            raise TypeError("Invalid key type. Must be a tuple or a string.")

    def __repr__(self):
        rows = [[""] + self.colnames] + [
            [self.rownames[i] + ":"] + [ftos(v) for v in self.data[i]]
            for i in range(self.data.shape[0])
        ]
        min_width = 8
        widths = [
            max(min_width, max(len(row[j]) for row in rows)) for j in range(len(rows[0]))
        ]
        return "\n".join(
            " ".join(cell.rjust(widths[j]) for j, cell in enumerate(row)) for row in rows
        )

    def rows(self, names):
        """Sub-table restricted to the given row names."""
        idx = [self.rownames.index(n) for n in names]
        return DataFrame(self.data[idx], self.colnames, [self.rownames[i] for i in idx])

    def append_row(self, row_data, row_name):
        self.data = np.vstack([self.data, np.asarray(row_data, dtype=float)])
        self.rownames.append(row_name)

    def to_dict(self):
        """{row name: {column name: value}}."""
        return {
            r: dict(zip(self.colnames, self.data[i].tolist()))
            for i, r in enumerate(self.rownames)
        }
