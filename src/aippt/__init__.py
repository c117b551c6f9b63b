"""
AIPPT - turn raw text material into a slide deck with configurable AI providers.

- services.gateway.ModelGateway: text/image calls across provider wire formats
- services.splitter.split_content: material -> ordered pages
- services.page_generator.generate_page_image: page -> image or HTML artifact
"""
