"""
Meetings Service package for the Meeting Access Gateway.

The service fronts the Zoom APIs for DooTask users:
- Authentication: every ``/api`` route passes the DooTask auth gate
- Signatures: HS256 Meeting SDK tokens signed with the API secret
- Meetings: Server-To-Server OAuth exchange, then meeting creation

Structure:
- app.main: FastAPI app, routes, and service wiring.
- app.adapters: HTTP clients for DooTask and Zoom.
- app.domain: Auth gate and the meeting-creation use case.
- app.signing: Meeting SDK signature generation.
"""
