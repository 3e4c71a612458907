"""Tourism operations backend: activities, schedules, capacity and bookings."""
