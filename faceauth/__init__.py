"""
Face Authentication Service

Face-based identity enrollment and verification using:
- DeepFace (Dlib model) for 128-d face descriptors
- Euclidean distance matching against enrolled identities
- FastAPI for RESTful API, PostgreSQL for descriptor storage
"""

__version__ = "1.0.0"
