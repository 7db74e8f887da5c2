"""
pyBSVAR usage example
=====================

This script shows the main features of the pyBSVAR package.
"""

import numpy as np
import pandas as pd
from pyBSVAR import BSVAR, RestrictionSet, estimate_bsvar, simulate_svar
from pyBSVAR import specify_prior, specify_starting_values

# =============================================================================
# Example 1: data
# =============================================================================

print("=" * 80)
print("Example 1: simulate data from a known SVAR")
print("=" * 80)

A_true = np.array([[0.5, 0.1, 0.2],
                   [0.0, 0.4, -0.1]])   # [lag 1 | constant]
B_true = np.array([[1.0, 0.0],
                   [0.5, 1.0]])         # column n = structural equation n

Y, X = simulate_svar(A_true, B_true, T=300, rng=42)
data = pd.DataFrame(Y.T, columns=['output', 'prices'])

print(f"Number of variables: {data.shape[1]}")
print(f"Number of observations: {data.shape[0]}")
print(data.head())

# =============================================================================
# Example 2: model class
# =============================================================================

print("\n" + "=" * 80)
print("Example 2: estimate the BSVAR model")
print("=" * 80)

model = BSVAR(
    data,
    p=1,
    B_restrictions='lower',   # recursive identification
    hyperpara={'hyper_S': 1.0},
    seed=1,
    verbose=True
)

model.estimate(S=500)         # burn-in
model.estimate(S=1000)        # continues the chain from the last draw

means = model.posterior_mean()
print("\nPosterior mean of B:")
print(means['B'].round(3))
print("\nTrue B:")
print(B_true)

tables = model.summary()

# =============================================================================
# Example 3: exclusion restrictions
# =============================================================================

print("\n" + "=" * 80)
print("Example 3: exclusion restrictions from a 0/1 pattern")
print("=" * 80)

# 1 marks a free entry of B; column n collects equation n
pattern = np.array([[1, 1],
                    [1, 0]])
VB = RestrictionSet.from_pattern(pattern)
print(VB.pattern())
print(f"Free parameters: {VB.total_free}")

# the starting value of B must satisfy the restrictions
start = specify_starting_values(N=2, K=3)
start.B = np.array([[0.0, 1.0],
                    [1.0, 0.0]])

# =============================================================================
# Example 4: the sampler with progress and cancellation hooks
# =============================================================================

print("\n" + "=" * 80)
print("Example 4: low-level sampler with hooks")
print("=" * 80)

progress = []
result = estimate_bsvar(
    S=2000,
    Y=Y,
    X=X,
    VB=VB,
    prior=specify_prior(N=2, p=1, d=1),
    starting_values=start,
    report_progress=progress.append,
    should_cancel=lambda: len(progress) > 25,   # stop half way
    cancel_check_every=100,
    rng=7
)

print(f"Cancelled: {result.cancelled}")
print(f"Committed draws: {result.n_draws}")
print(f"B[1, 1] in every draw: {np.unique(result.posterior.B[1, 1, :])}")
print("\nHyperparameter draws:")
print(result.hyper_frame().describe().round(3))

print("\n" + "=" * 80)
print("Done")
print("=" * 80)
