"""
Scheduling Domain

Time arithmetic and slot reservation shared by the availability and booking
domains.

Structure:
```
partypallet/domain/scheduling/
├── __init__.py
├── time_calculator.py   # HH:MM parsing, window overlap, overnight pricing
└── reservation.py       # Slot planning (pure) and the transactional engine
```

Rules:
- A window is half-open [start, end) on one calendar day. Touching windows
  do not overlap. Wraparound past midnight is rejected at slot level.
- Slots of one day are kept pairwise disjoint after every mutation.
- Non-cancelled bookings of one day are kept pairwise disjoint. The day row is
  locked (FOR UPDATE / BEGIN IMMEDIATE on SQLite) while a reservation decides.
"""
