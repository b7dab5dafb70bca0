"""
Generic clinical score evaluator.

Modules
-------
tiers     : find_band() + check_bounds() — ordered-threshold lookup shared by
            every instrument and formula table.
selection : FactorSelection — per-screen selection state with atomic
            mutual-exclusivity updates.
evaluator : compute_score() + classify() + evaluate() + reset() — pure
            functions, plus the ScoreEvaluator facade.
"""
