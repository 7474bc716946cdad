"""Client side of HouseCheck: data access, session, stores and page views."""
