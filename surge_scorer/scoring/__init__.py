"""Daily scoring, batch summaries and single-shot predictions.

Modules
-------
engine     - weighted daily scores, verdicts and the adaptive batch threshold
summary    - factor frequency, return association and score summaries
prediction - category / confidence / recommendations for one factor vector
"""
