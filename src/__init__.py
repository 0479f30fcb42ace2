"""Document Verification Service.

Collects Aadhar, PAN, and marksheet details, extracts them from uploaded
images with Tesseract OCR or Google Gemini, and checks them against
stand-in verifiers.
"""
