"""Services Layer — profile persistence, usage scans and the transactional facade.

Invariants:
    - Store, scanner and collector take an AsyncSession and never open transactions
    - ProfileService owns transaction boundaries and project resolution
"""
