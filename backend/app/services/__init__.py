"""
Progression services.

Ranking, qualification and match-building modules are pure functions over
domain values. progression_service, advancement_service and position_points
own the database access; only progression_service and position_points commit.
"""
