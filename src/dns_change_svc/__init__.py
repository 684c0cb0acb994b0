"""
DNS Change Service - peer-approved DNS mutations

Turns proposed DNS record changes into auditable operations:
- Requesters propose record creations and edits on a domain
- Owners of the domain accept or reject each proposal
- Accepted proposals are applied once at the DNS provider
"""

__version__ = "0.1.0"
