"""
Integration Tests Package

End-to-end pipeline runs over fixed documents.

TEST AXIOMS:
=============
1. Determinism: same documents + config = identical artifacts
2. Traceability: every edge cites the sentences that produced it
3. Explicit failure: bad input raises up front, empty results are data
"""
