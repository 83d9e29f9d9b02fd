"""Category scoring for site scans."""

# Import explicitly where needed:
# from worker.scoring.calculator import calculate_scores, overall_score, ScoringResult
# from worker.scoring.bands import score_color, ScoreColor
