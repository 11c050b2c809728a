"""
Domain modules: badges, leagues, leaderboard, seasons and the submission
approval workflow. Each module owns its store protocol, SQL store and service.
"""
