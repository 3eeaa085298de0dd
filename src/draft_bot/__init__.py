"""Discord bot that schedules draft sessions with a capacity and a waitlist."""
