"""Theater box office: customers, events, reservations and the loyalty program."""
