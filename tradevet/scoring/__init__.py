"""
Signal scoring module.

Contradiction detection, the seven-category confidence scorer, the
post-scoring penalties and the keep/flip/reject adjustment decision.
"""
