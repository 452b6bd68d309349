"""StrideSync: Strava activity sync and weekly distance stats."""
