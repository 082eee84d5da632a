"""
                        Services Module

Business logic for the ordering system. Handlers take their database
session and collaborators as arguments; nothing here reaches for a
module-global client.

Domain services:
    - orders: submission, status lifecycle, mark-as-paid
    - receipts: receipt text, messaging deep link, print/email payloads
    - menu: categories, menu items, customer filtering and assistant search
    - tables: tables and QR tokens
    - branding: restaurant settings and posters
    - analytics: revenue counters, customer aggregation, CSV export

Integration services (each with a development and a production backend):
    - realtime: order change feed
    - carts: customer cart store
    - storage: image storage
    - notifications: receipt emails
"""
