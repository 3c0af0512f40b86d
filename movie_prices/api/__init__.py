"""REST API over the movie aggregation core."""
